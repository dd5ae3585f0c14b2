"""Tests for bilinear sampling."""

import math

import numpy as np

from video_denoise.filters.interpolate import bilinear_sample, interpolate


GRID = np.array([
    [0, 100, 50],
    [100, 200, 150],
    [10, 20, 30],
], dtype=np.uint8)


class TestInterpolate:
    def test_integer_coordinates_are_exact(self):
        for y in range(3):
            for x in range(3):
                assert interpolate(GRID, y, x) == float(GRID[y, x])

    def test_center_of_four(self):
        assert interpolate(GRID, 0.5, 0.5) == 100.0

    def test_along_row(self):
        assert math.isclose(interpolate(GRID, 0.0, 0.25), 25.0)

    def test_outside_falls_back_to_nearest(self):
        assert interpolate(GRID, -3.0, -3.0) == 0.0
        assert interpolate(GRID, 2.4, 5.0) == 30.0
        assert interpolate(GRID, 1.6, 2.2) == 30.0


class TestBilinearSample:
    def test_matches_scalar(self):
        ys = np.array([[0.0, 0.5], [1.25, 2.0], [-1.0, 1.7]])
        xs = np.array([[0.0, 0.5], [0.75, 2.0], [0.3, 2.5]])
        result = bilinear_sample(GRID, xs, ys)
        for idx in np.ndindex(xs.shape):
            assert math.isclose(result[idx], interpolate(GRID, ys[idx], xs[idx]))

    def test_nan_propagates(self):
        result = bilinear_sample(GRID, np.array([np.nan, 1.0]), np.array([0.0, np.nan]))
        assert np.isnan(result).all()
