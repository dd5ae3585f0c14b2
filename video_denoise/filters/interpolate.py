"""Bilinear sampling of pixel grids at real-valued coordinates."""

import math

import numpy as np


def interpolate(grid: np.ndarray, y: float, x: float) -> float:
    """Sample a grid at (y, x) with bilinear interpolation.

    When one of the four surrounding integer corners lies outside the grid
    the clamped nearest pixel is returned instead.

    Args:
        grid: Pixel grid
        y: Row coordinate
        x: Column coordinate

    Returns:
        Interpolated intensity (exact at integer coordinates)
    """
    height, width = grid.shape
    x1 = math.floor(x)
    y1 = math.floor(y)
    x2 = x1 + 1
    y2 = y1 + 1

    if x1 < 0 or y1 < 0 or x2 >= width or y2 >= height:
        ny = min(max(math.floor(y + 0.5), 0), height - 1)
        nx = min(max(math.floor(x + 0.5), 0), width - 1)
        return float(grid[ny, nx])

    dx = x - x1
    dy = y - y1
    return (
        (1 - dx) * (1 - dy) * float(grid[y1, x1])
        + dx * (1 - dy) * float(grid[y1, x2])
        + (1 - dx) * dy * float(grid[y2, x1])
        + dx * dy * float(grid[y2, x2])
    )


def bilinear_sample(grid: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Vectorised :func:`interpolate` over coordinate arrays.

    NaN coordinates yield NaN samples.

    Args:
        grid: Pixel grid (H, W)
        xs: Column coordinates
        ys: Row coordinates, same shape as xs

    Returns:
        float64 array of samples with the shape of xs
    """
    height, width = grid.shape
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    missing = np.isnan(xs) | np.isnan(ys)
    xs = np.where(missing, 0.0, xs)
    ys = np.where(missing, 0.0, ys)

    x1 = np.floor(xs)
    y1 = np.floor(ys)
    inside = (x1 >= 0) & (y1 >= 0) & (x1 + 1 < width) & (y1 + 1 < height)

    # Nearest-pixel fallback for samples whose corners leave the grid
    nx = np.clip(np.floor(xs + 0.5), 0, width - 1).astype(np.intp)
    ny = np.clip(np.floor(ys + 0.5), 0, height - 1).astype(np.intp)
    result = grid[ny, nx].astype(np.float64)

    ix1 = np.clip(x1, 0, width - 1).astype(np.intp)
    iy1 = np.clip(y1, 0, height - 1).astype(np.intp)
    ix2 = np.clip(x1 + 1, 0, width - 1).astype(np.intp)
    iy2 = np.clip(y1 + 1, 0, height - 1).astype(np.intp)
    dx = xs - x1
    dy = ys - y1
    blended = (
        (1 - dx) * (1 - dy) * grid[iy1, ix1]
        + dx * (1 - dy) * grid[iy1, ix2]
        + (1 - dx) * dy * grid[iy2, ix1]
        + dx * dy * grid[iy2, ix2]
    )

    result = np.where(inside, blended, result)
    result[missing] = np.nan
    return result
