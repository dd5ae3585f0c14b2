"""Tests for pixel grids and frame sequences."""

import numpy as np
import pytest

from video_denoise.frames import (
    PAD_CLAMP,
    PAD_ZERO,
    FrameSequence,
    as_grid,
    clamped_windows,
    pad,
)
from video_denoise.utils import InvalidArgumentError


class TestAsGrid:
    def test_uint8_passthrough(self):
        grid = np.zeros((3, 4), dtype=np.uint8)
        assert as_grid(grid) is grid

    def test_converts_integers(self):
        grid = as_grid([[0, 255], [10, 20]])
        assert grid.dtype == np.uint8
        assert grid.tolist() == [[0, 255], [10, 20]]

    def test_rejects_3d(self):
        with pytest.raises(InvalidArgumentError):
            as_grid(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_rejects_empty(self):
        with pytest.raises(InvalidArgumentError):
            as_grid(np.zeros((0, 4), dtype=np.uint8))

    def test_rejects_floats(self):
        with pytest.raises(InvalidArgumentError):
            as_grid(np.zeros((2, 2), dtype=np.float32))

    def test_rejects_out_of_range(self):
        with pytest.raises(InvalidArgumentError):
            as_grid([[0, 256]])


class TestPad:
    def test_clamp_replicates_edges(self):
        grid = np.array([[1, 2], [3, 4]], dtype=np.uint8)
        padded = pad(grid, 1, PAD_CLAMP)
        assert padded.shape == (4, 4)
        assert padded[1:3, 1:3].tolist() == grid.tolist()
        assert padded[0].tolist() == [1, 1, 2, 2]
        assert padded[3].tolist() == [3, 3, 4, 4]

    def test_zero_fills_border(self):
        grid = np.full((2, 2), 9, dtype=np.uint8)
        padded = pad(grid, 2, PAD_ZERO)
        assert padded.shape == (6, 6)
        assert padded.sum() == 9 * 4
        assert padded[2:4, 2:4].tolist() == grid.tolist()

    def test_radius_zero_copies(self):
        grid = np.ones((2, 3), dtype=np.uint8)
        padded = pad(grid, 0)
        assert padded.tolist() == grid.tolist()
        assert padded is not grid

    def test_unknown_mode(self):
        with pytest.raises(InvalidArgumentError):
            pad(np.ones((2, 2), dtype=np.uint8), 1, "mirror")

    def test_negative_radius(self):
        with pytest.raises(InvalidArgumentError):
            pad(np.ones((2, 2), dtype=np.uint8), -1)


class TestClampedWindows:
    def test_shape_and_corner(self):
        grid = np.arange(12, dtype=np.uint8).reshape(3, 4)
        windows = clamped_windows(grid, slice(0, 3))
        assert windows.shape == (3, 4, 3, 3)
        # Top-left window replicates the corner pixel
        assert windows[0, 0].tolist() == [[0, 0, 1], [0, 0, 1], [4, 4, 5]]

    def test_row_subset_matches_full(self):
        grid = np.arange(30, dtype=np.uint8).reshape(5, 6)
        full = clamped_windows(grid, slice(0, 5))
        part = clamped_windows(grid, slice(2, 4))
        assert np.array_equal(full[2:4], part)


class TestFrameSequence:
    def test_basic(self, flat_sequence):
        assert len(flat_sequence) == 5
        assert flat_sequence.shape == (12, 10)
        assert flat_sequence.height == 12
        assert flat_sequence.width == 10
        assert flat_sequence.fps == 25.0

    def test_mismatched_shapes(self):
        with pytest.raises(InvalidArgumentError):
            FrameSequence([np.zeros((2, 2), dtype=np.uint8), np.zeros((3, 2), dtype=np.uint8)])

    def test_from_array(self):
        seq = FrameSequence.from_array(np.zeros((4, 3, 2), dtype=np.uint8))
        assert len(seq) == 4
        assert seq.shape == (3, 2)
        assert seq.to_array().shape == (4, 3, 2)

    def test_from_array_rejects_2d(self):
        with pytest.raises(InvalidArgumentError):
            FrameSequence.from_array(np.zeros((3, 2), dtype=np.uint8))

    def test_replace_checks_shape(self, flat_sequence):
        with pytest.raises(InvalidArgumentError):
            flat_sequence.replace(0, np.zeros((2, 2), dtype=np.uint8))

    def test_copy_is_independent(self, flat_sequence):
        clone = flat_sequence.copy()
        clone.replace(1, np.zeros(flat_sequence.shape, dtype=np.uint8))
        assert flat_sequence[1].max() == 128
        assert clone[1].max() == 0
        assert clone.fps == flat_sequence.fps

    def test_empty(self):
        seq = FrameSequence([])
        assert len(seq) == 0
        assert seq.shape == (0, 0)
