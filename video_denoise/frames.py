"""Grayscale pixel grids and frame sequences.

A pixel grid is a 2D ``uint8`` numpy array indexed ``grid[y, x]``. Filters
never write into the grids they read: every stage allocates its output.
"""

from typing import Iterable, Iterator, Optional

import numpy as np

from video_denoise.utils import InvalidArgumentError

# Border policies for padded grids
PAD_CLAMP = "clamp"  # replicate the nearest edge row/column
PAD_ZERO = "zero"  # fill the border with 0

PADDING_MODES = [PAD_CLAMP, PAD_ZERO]

_NUMPY_PAD_MODES = {PAD_CLAMP: "edge", PAD_ZERO: "constant"}


def as_grid(data) -> np.ndarray:
    """Validate and convert data to a grayscale pixel grid.

    Args:
        data: 2D array-like of intensities in 0..255

    Returns:
        ``uint8`` array of shape (H, W)

    Raises:
        InvalidArgumentError: If data is not a non-empty 2D grid of 8-bit values
    """
    array = np.asarray(data)
    if array.ndim != 2:
        raise InvalidArgumentError(f"Pixel grid must be 2D, got shape {array.shape}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise InvalidArgumentError(f"Pixel grid must not be empty, got shape {array.shape}")
    if array.dtype == np.uint8:
        return array
    if not np.issubdtype(array.dtype, np.integer):
        raise InvalidArgumentError(f"Pixel grid must hold integers, got {array.dtype}")
    if array.min() < 0 or array.max() > 255:
        raise InvalidArgumentError("Pixel values must be within 0..255")
    return array.astype(np.uint8)


def check_radius(radius: int) -> int:
    """Return radius as int, rejecting negative values."""
    if int(radius) != radius or radius < 0:
        raise InvalidArgumentError(f"Radius must be a non-negative integer, got {radius}")
    return int(radius)


def check_padding(mode: str) -> str:
    """Return mode if it names a known border policy."""
    if mode not in _NUMPY_PAD_MODES:
        raise InvalidArgumentError(f"Unknown padding mode: {mode}. Available: {', '.join(PADDING_MODES)}")
    return mode


def pad(grid: np.ndarray, radius: int, mode: str = PAD_CLAMP) -> np.ndarray:
    """Build a padded copy of a grid.

    The interior ``[radius, radius + H) x [radius, radius + W)`` equals the
    grid; the border follows ``mode``.

    Args:
        grid: Source pixel grid
        radius: Border width in pixels
        mode: PAD_CLAMP or PAD_ZERO

    Returns:
        New array of shape (H + 2 * radius, W + 2 * radius)
    """
    radius = check_radius(radius)
    np_mode = _NUMPY_PAD_MODES[check_padding(mode)]
    if radius == 0:
        return grid.copy()
    return np.pad(grid, radius, mode=np_mode)


def clamped_windows(grid: np.ndarray, rows: slice, size: int = 3) -> np.ndarray:
    """Return the size x size clamp-to-edge neighborhoods of a row range.

    Args:
        grid: Source pixel grid
        rows: Row slice of the grid (step 1)
        size: Odd window side length

    Returns:
        Read-only view of shape (len(rows), W, size, size)
    """
    half = size // 2
    start, stop, _ = rows.indices(grid.shape[0])
    # Pad only the rows needed for this range plus the clamped halo
    top = max(start - half, 0)
    bottom = min(stop + half, grid.shape[0])
    block = grid[top:bottom]
    pad_top = half - (start - top)
    pad_bottom = half - (bottom - stop)
    block = np.pad(block, ((pad_top, pad_bottom), (half, half)), mode="edge")
    return np.lib.stride_tricks.sliding_window_view(block, (size, size))


class FrameSequence:
    """Ordered collection of equally sized grayscale frames.

    Frames are replaced whole, never edited in place, so a stage can keep
    reading an earlier snapshot while building its output.
    """

    def __init__(self, frames: Iterable, fps: Optional[float] = None):
        """Initialize frame sequence.

        Args:
            frames: Iterable of 2D grids
            fps: Frame rate, carried through untouched
        """
        self._frames: list[np.ndarray] = [as_grid(f) for f in frames]
        self.fps = fps
        if self._frames:
            shape = self._frames[0].shape
            for index, frame in enumerate(self._frames):
                if frame.shape != shape:
                    raise InvalidArgumentError(
                        f"Frame {index} has shape {frame.shape}, expected {shape}"
                    )

    @classmethod
    def from_array(cls, array: np.ndarray, fps: Optional[float] = None) -> "FrameSequence":
        """Create a sequence from an (N, H, W) array."""
        array = np.asarray(array)
        if array.ndim != 3:
            raise InvalidArgumentError(f"Expected (N, H, W) array, got shape {array.shape}")
        return cls(list(array), fps=fps)

    @property
    def shape(self) -> tuple[int, int]:
        """Frame shape (H, W)."""
        if not self._frames:
            return (0, 0)
        return self._frames[0].shape

    @property
    def height(self) -> int:
        return self.shape[0]

    @property
    def width(self) -> int:
        return self.shape[1]

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> np.ndarray:
        return self._frames[index]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._frames)

    def replace(self, index: int, frame: np.ndarray) -> None:
        """Replace a whole frame.

        Args:
            index: Frame index
            frame: New grid with the sequence's shape
        """
        frame = as_grid(frame)
        if frame.shape != self.shape:
            raise InvalidArgumentError(f"Frame has shape {frame.shape}, expected {self.shape}")
        self._frames[index] = frame

    def padded(self, index: int, radius: int, mode: str = PAD_CLAMP) -> np.ndarray:
        """Return a padded copy of one frame."""
        return pad(self._frames[index], radius, mode)

    def copy(self) -> "FrameSequence":
        """Shallow copy: a new frame list sharing the (immutable) grids."""
        clone = FrameSequence([], fps=self.fps)
        clone._frames = list(self._frames)
        return clone

    def to_array(self) -> np.ndarray:
        """Stack frames into an (N, H, W) array."""
        if not self._frames:
            return np.zeros((0, 0, 0), dtype=np.uint8)
        return np.stack(self._frames)

    def __repr__(self) -> str:
        return f"FrameSequence(frames={len(self)}, shape={self.shape}, fps={self.fps})"
