"""Tests for blob detection and repair."""

import numpy as np
import pytest

from video_denoise.filters.blob import (
    BlobDetector,
    disk_kernel,
    radial_offsets,
    temporal_neighbors,
)
from video_denoise.parallel import Band, WorkDispatcher
from video_denoise.utils import InvalidArgumentError


def frame_with_disk(value, radius=7, size=31, background=128):
    frame = np.full((size, size), background, dtype=np.uint8)
    c = size // 2
    yy, xx = np.mgrid[:size, :size]
    frame[(yy - c) ** 2 + (xx - c) ** 2 <= radius * radius] = value
    return frame


class TestGeometry:
    def test_radial_offsets(self):
        offsets = radial_offsets(5)
        assert len(offsets) == 8
        assert offsets[0] == (0, 5)
        assert offsets[2] == (5, 0)
        assert offsets[4] == (0, -5)
        assert offsets[1] == (4, 4)

    def test_disk_kernel(self):
        kernel = disk_kernel(2)
        assert kernel.shape == (5, 5)
        assert kernel[2, 2] == 1
        assert kernel[0, 2] == 1
        assert kernel[0, 0] == 0


class TestBlobDetector:
    def test_repairs_dark_blob(self):
        frame = frame_with_disk(10)
        neighbors = [np.full(frame.shape, 128, dtype=np.uint8) for _ in range(4)]
        repaired, count = BlobDetector().repair_frame(frame, neighbors)
        assert count > 0
        assert repaired[15, 15] == 128
        assert frame[15, 15] == 10

    def test_light_blob_needs_polarity(self):
        frame = frame_with_disk(250)
        neighbors = [np.full(frame.shape, 90, dtype=np.uint8) for _ in range(2)]
        _, count = BlobDetector().repair_frame(frame, neighbors)
        assert count == 0

        repaired, count = BlobDetector(polarity=True).repair_frame(frame, neighbors)
        assert count > 0
        assert repaired[15, 15] == 90
        assert repaired[0, 0] == 128

    def test_isolated_speck_is_not_a_blob(self):
        frame = np.full((20, 20), 128, dtype=np.uint8)
        frame[10, 10] = 0
        neighbors = [np.full(frame.shape, 128, dtype=np.uint8)]
        repaired, count = BlobDetector().repair_frame(frame, neighbors)
        assert count == 0
        assert np.array_equal(repaired, frame)

    def test_light_center_in_dark_ring_is_confirmed(self):
        frame = frame_with_disk(5)
        frame[15, 15] = 250
        centers = np.zeros(frame.shape, dtype=np.uint8)
        BlobDetector().detect_band(frame, centers, Band(0, frame.shape[0]))
        assert centers[15, 15] == 1

    def test_polarity_rejects_light_center_in_dark_ring(self):
        frame = frame_with_disk(5)
        frame[15, 15] = 250
        centers = np.zeros(frame.shape, dtype=np.uint8)
        BlobDetector(polarity=True).detect_band(frame, centers, Band(0, frame.shape[0]))
        assert centers[15, 15] == 0
        # Dark centers of the same disk still qualify
        assert centers[14, 15] == 1

    def test_even_neighbor_count_uses_upper_middle(self):
        frame = frame_with_disk(0)
        neighbors = [np.full(frame.shape, v, dtype=np.uint8) for v in (40, 10, 30, 20)]
        repaired, _ = BlobDetector().repair_frame(frame, neighbors)
        assert repaired[15, 15] == 30

    def test_no_neighbors_leaves_frame(self):
        frame = frame_with_disk(0)
        repaired, count = BlobDetector().repair_frame(frame, [])
        assert count > 0
        assert np.array_equal(repaired, frame)

    def test_band_split_does_not_change_result(self):
        frame = frame_with_disk(10)
        frame[:3, :3] = 250
        neighbors = [np.full(frame.shape, v, dtype=np.uint8) for v in (100, 120, 140)]
        expected, count = BlobDetector(radius=3).repair_frame(frame, neighbors)
        with WorkDispatcher(workers=6) as dispatcher:
            result, band_count = BlobDetector(radius=3).repair_frame(frame, neighbors, dispatcher)
        assert band_count == count
        assert np.array_equal(result, expected)

    @pytest.mark.parametrize("kwargs", [
        {"dark_threshold": 220, "light_threshold": 215},
        {"radius": 0},
        {"min_votes": 9},
        {"window": 0},
        {"light_threshold": 300},
        {"radius": 2.5},
        {"min_votes": 6.5},
        {"window": 1.5},
        {"window": "2"},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(InvalidArgumentError):
            BlobDetector(**kwargs)

    def test_integral_floats_become_ints(self):
        detector = BlobDetector(radius=3.0, min_votes=6.0, window=2.0)
        assert (detector.radius, detector.min_votes, detector.window) == (3, 6, 2)
        assert type(detector.window) is int


class TestTemporalNeighbors:
    def test_middle(self):
        frames = list(range(7))
        assert temporal_neighbors(frames, 3, 2) == [1, 2, 4, 5]

    def test_start(self):
        frames = list(range(7))
        assert temporal_neighbors(frames, 0, 2) == [1, 2]

    def test_end(self):
        frames = list(range(4))
        assert temporal_neighbors(frames, 3, 2) == [1, 2]

    def test_single_frame(self):
        assert temporal_neighbors([0], 0, 2) == []
