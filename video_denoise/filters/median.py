"""Spatial median filter for salt-and-pepper noise."""

from typing import Optional

import numpy as np

from video_denoise.frames import PAD_CLAMP, check_radius, pad
from video_denoise.parallel import Band, WorkDispatcher


def median_band(padded: np.ndarray, out: np.ndarray, band: Band, radius: int) -> None:
    """Write the median of every (2r+1)^2 window of a band into out.

    Args:
        padded: Source frame padded by ``radius`` on every side
        out: Destination frame (H, W); only rows of ``band`` are written
        band: Rows to compute
        radius: Window radius
    """
    if radius == 0:
        out[band.rows] = padded[band.rows]
        return

    size = 2 * radius + 1
    # Padded rows [start, end + 2r) hold every window centred on the band
    block = padded[band.start:band.end + 2 * radius]
    windows = np.lib.stride_tricks.sliding_window_view(block, (size, size))
    samples = windows.reshape(band.height, out.shape[1], size * size)
    middle = (size * size) // 2
    out[band.rows] = np.partition(samples, middle, axis=-1)[..., middle]


def median_filter(
    grid: np.ndarray,
    radius: int = 1,
    padding: str = PAD_CLAMP,
    dispatcher: Optional[WorkDispatcher] = None,
) -> np.ndarray:
    """Median-filter a whole frame.

    Args:
        grid: Source pixel grid
        radius: Window radius (0 = identity)
        padding: Border policy for the window
        dispatcher: Band pool (None = single band in the calling thread)

    Returns:
        New filtered grid
    """
    radius = check_radius(radius)
    padded = pad(grid, radius, padding)
    out = np.empty_like(grid)

    if dispatcher is None:
        median_band(padded, out, Band(0, grid.shape[0]), radius)
    else:
        dispatcher.run_bands(grid.shape[0], lambda band: median_band(padded, out, band, radius))
    return out
