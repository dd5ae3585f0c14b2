"""Dense displacement fields consumed by motion-compensated correction."""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from tqdm import tqdm

from video_denoise.frames import FrameSequence
from video_denoise.utils import InvalidArgumentError

logger = logging.getLogger(__name__)


class FlowFields:
    """Per-frame flow toward the before and after reference frames.

    ``before[f]`` maps each pixel of frame f to its position in the before
    reference, ``after[f]`` to its position in the after reference. Both are
    (H, W, 2) float arrays (channel 0 = dx, channel 1 = dy) or None where no
    field exists. NaN samples mean "no motion estimate for this pixel".
    """

    def __init__(
        self,
        before: list[Optional[np.ndarray]],
        after: list[Optional[np.ndarray]],
    ):
        if len(before) != len(after):
            raise InvalidArgumentError(
                f"Flow lists differ in length: {len(before)} before, {len(after)} after"
            )
        self.before = before
        self.after = after

    def __len__(self) -> int:
        return len(self.before)

    def pair(self, index: int) -> tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        """Flow fields of one frame (None when out of range)."""
        if index >= len(self):
            return None, None
        return self.before[index], self.after[index]

    def validate(self, frames: FrameSequence) -> None:
        """Check every field against the frame shape.

        Raises:
            InvalidArgumentError: If the frame count or a field shape differs
        """
        if len(self) != len(frames):
            raise InvalidArgumentError(f"Flow fields cover {len(self)} frames, video has {len(frames)}")
        expected = frames.shape + (2,)
        for name, fields in (("before", self.before), ("after", self.after)):
            for index, field in enumerate(fields):
                if field is not None and field.shape != expected:
                    raise InvalidArgumentError(
                        f"Flow field '{name}' of frame {index} has shape {field.shape}, expected {expected}"
                    )

    def save(self, path: Path) -> Path:
        """Save to an .npz archive; missing fields are stored as NaN.

        Args:
            path: Output file path

        Returns:
            Path to saved file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(path, before=_stack(self.before), after=_stack(self.after))
        return path

    @classmethod
    def load(cls, path: Path) -> "FlowFields":
        """Load fields saved by :meth:`save`.

        The archive holds ``before`` and ``after`` arrays of shape
        (N, H, W, 2). A frame whose field is entirely NaN is treated as missing.
        """
        path = Path(path)
        if not path.exists():
            raise InvalidArgumentError(f"Flow file not found: {path}")

        with np.load(path) as data:
            if "before" not in data or "after" not in data:
                raise InvalidArgumentError(f"Flow file {path} must contain 'before' and 'after' arrays")
            before = _unstack(data["before"])
            after = _unstack(data["after"])
        return cls(before, after)


def _stack(fields: list[Optional[np.ndarray]]) -> np.ndarray:
    shape = next((f.shape for f in fields if f is not None), None)
    if shape is None:
        return np.zeros((len(fields), 0, 0, 2), dtype=np.float32)
    stacked = np.full((len(fields),) + shape, np.nan, dtype=np.float32)
    for index, field in enumerate(fields):
        if field is not None:
            stacked[index] = field
    return stacked


def _unstack(array: np.ndarray) -> list[Optional[np.ndarray]]:
    if array.ndim != 4 or array.shape[-1] != 2:
        raise InvalidArgumentError(f"Flow array must have shape (N, H, W, 2), got {array.shape}")
    return [None if np.isnan(f).all() else f.astype(np.float32) for f in array]


def estimate_farneback(
    frames: FrameSequence,
    before_offset: int = 1,
    after_offset: int = 2,
    show_progress: bool = True,
) -> FlowFields:
    """Estimate flow fields with OpenCV's Farneback method.

    For frame f, ``before`` is the flow from f to f - before_offset and
    ``after`` the flow from f to f + after_offset, so ``(x + dx, y + dy)``
    is where the pixel sits in the reference frame.

    Args:
        frames: Grayscale frames
        before_offset: Distance to the before reference
        after_offset: Distance to the after reference
        show_progress: Show progress bar

    Returns:
        FlowFields with None where a reference frame does not exist
    """
    import cv2

    count = len(frames)
    before: list[Optional[np.ndarray]] = [None] * count
    after: list[Optional[np.ndarray]] = [None] * count

    def farneback(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
        return cv2.calcOpticalFlowFarneback(
            src, dst,
            None,
            pyr_scale=0.5, levels=3, winsize=15,
            iterations=3, poly_n=5, poly_sigma=1.2,
            flags=0,
        )

    for f in tqdm(range(count), desc="Estimating flow", disable=not show_progress):
        if f - before_offset >= 0:
            before[f] = farneback(frames[f], frames[f - before_offset])
        if f + after_offset < count:
            after[f] = farneback(frames[f], frames[f + after_offset])

    logger.debug("Estimated Farneback flow for %d frames", count)
    return FlowFields(before, after)
