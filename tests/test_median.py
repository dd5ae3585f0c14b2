"""Tests for the spatial median filter."""

import numpy as np
import pytest

from video_denoise.filters.median import median_filter
from video_denoise.frames import PAD_CLAMP, PAD_ZERO
from video_denoise.parallel import WorkDispatcher
from video_denoise.utils import InvalidArgumentError


def brute_force_median(grid, radius, padding):
    height, width = grid.shape
    out = np.empty_like(grid)
    for y in range(height):
        for x in range(width):
            values = []
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    sy, sx = y + dy, x + dx
                    if padding == PAD_CLAMP:
                        values.append(grid[min(max(sy, 0), height - 1), min(max(sx, 0), width - 1)])
                    elif 0 <= sy < height and 0 <= sx < width:
                        values.append(grid[sy, sx])
                    else:
                        values.append(0)
            out[y, x] = sorted(values)[len(values) // 2]
    return out


class TestMedianFilter:
    def test_removes_spike(self):
        grid = np.full((5, 5), 100, dtype=np.uint8)
        grid[2, 2] = 255
        result = median_filter(grid, radius=1)
        assert (result == 100).all()

    def test_radius_zero_is_identity(self, rng):
        grid = rng.integers(0, 256, size=(6, 7), dtype=np.uint8)
        assert np.array_equal(median_filter(grid, radius=0), grid)

    def test_input_untouched(self, rng):
        grid = rng.integers(0, 256, size=(6, 7), dtype=np.uint8)
        before = grid.copy()
        median_filter(grid, radius=1)
        assert np.array_equal(grid, before)

    @pytest.mark.parametrize("padding", [PAD_CLAMP, PAD_ZERO])
    @pytest.mark.parametrize("radius", [1, 2])
    def test_matches_brute_force(self, rng, radius, padding):
        grid = rng.integers(0, 256, size=(9, 11), dtype=np.uint8)
        expected = brute_force_median(grid, radius, padding)
        assert np.array_equal(median_filter(grid, radius, padding), expected)

    @pytest.mark.parametrize("workers", [1, 2, 3, 5, 16])
    def test_band_split_does_not_change_result(self, rng, workers):
        grid = rng.integers(0, 256, size=(13, 8), dtype=np.uint8)
        expected = median_filter(grid, radius=1)
        with WorkDispatcher(workers=workers) as dispatcher:
            result = median_filter(grid, radius=1, dispatcher=dispatcher)
        assert np.array_equal(result, expected)

    def test_single_pixel_frame(self):
        grid = np.array([[42]], dtype=np.uint8)
        assert median_filter(grid, radius=2).tolist() == [[42]]

    def test_zero_padding_darkens_corner(self):
        grid = np.full((4, 4), 200, dtype=np.uint8)
        assert median_filter(grid, radius=1, padding=PAD_ZERO)[0, 0] == 0
        assert median_filter(grid, radius=1, padding=PAD_CLAMP)[0, 0] == 200

    def test_negative_radius(self):
        with pytest.raises(InvalidArgumentError):
            median_filter(np.zeros((3, 3), dtype=np.uint8), radius=-1)
