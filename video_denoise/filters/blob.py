"""Detection and temporal repair of extreme-intensity blobs.

Blob centers are pixels far too dark or too light whose ring of eight
radial samples is mostly dark, a coarse test for a roughly round patch of
corruption. The polarity option asks light centers for a light ring instead.
Everything within the radius of a center is rebuilt from the same pixel in
nearby frames.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import cv2
import numpy as np

from video_denoise.parallel import Band, WorkDispatcher
from video_denoise.utils import InvalidArgumentError, check_integer

DIRECTIONS = 8


def radial_offsets(radius: int) -> list[tuple[int, int]]:
    """(dy, dx) offsets of the eight radial samples at a radius."""
    offsets = []
    for k in range(DIRECTIONS):
        angle = 2.0 * math.pi * k / DIRECTIONS
        dy = int(math.floor(radius * math.sin(angle) + 0.5))
        dx = int(math.floor(radius * math.cos(angle) + 0.5))
        offsets.append((dy, dx))
    return offsets


def disk_kernel(radius: int) -> np.ndarray:
    """uint8 mask of offsets within Euclidean distance radius."""
    span = np.arange(-radius, radius + 1)
    dist2 = span[:, None] ** 2 + span[None, :] ** 2
    return (dist2 <= radius * radius).astype(np.uint8)


@dataclass
class BlobDetector:
    """Blob detection and repair parameters."""

    dark_threshold: int = 40
    light_threshold: int = 215
    radius: int = 5
    min_votes: int = 6
    window: int = 2
    polarity: bool = False

    def __post_init__(self):
        if not 0 <= self.dark_threshold <= 255 or not 0 <= self.light_threshold <= 255:
            raise InvalidArgumentError("Blob thresholds must be within 0..255")
        if self.dark_threshold >= self.light_threshold:
            raise InvalidArgumentError("Blob dark threshold must be below the light threshold")
        self.radius = check_integer(self.radius, "Blob radius", minimum=1)
        self.min_votes = check_integer(self.min_votes, "Blob min votes", minimum=1)
        if self.min_votes > DIRECTIONS:
            raise InvalidArgumentError(f"Blob min votes must be within 1..{DIRECTIONS}")
        self.window = check_integer(self.window, "Blob window", minimum=1)

    def detect_band(self, frame: np.ndarray, centers: np.ndarray, band: Band) -> None:
        """Mark confirmed blob centers of a band in centers (uint8 0/1).

        Any candidate, dark or light, is confirmed by dark radial samples.
        With ``polarity`` set a light candidate needs light samples instead.
        """
        height, width = frame.shape
        rows = frame[band.rows]
        dark = rows < self.dark_threshold
        light = rows > self.light_threshold

        ys = np.arange(band.start, band.end)[:, None]
        xs = np.arange(width)[None, :]
        dark_votes = np.zeros(rows.shape, dtype=np.int32)
        light_votes = np.zeros(rows.shape, dtype=np.int32)

        for dy, dx in radial_offsets(self.radius):
            sy = ys + dy
            sx = xs + dx
            inside = (sy >= 0) & (sy < height) & (sx >= 0) & (sx < width)
            samples = frame[np.clip(sy, 0, height - 1), np.clip(sx, 0, width - 1)]
            dark_votes += inside & (samples < self.dark_threshold)
            light_votes += inside & (samples > self.light_threshold)

        if self.polarity:
            confirmed = (dark & (dark_votes >= self.min_votes)) | (light & (light_votes >= self.min_votes))
        else:
            confirmed = (dark | light) & (dark_votes >= self.min_votes)
        centers[band.rows] = confirmed

    def region_band(self, centers: np.ndarray, region: np.ndarray, band: Band) -> None:
        """Mark pixels of a band lying within radius of any center."""
        r = self.radius
        height, width = centers.shape
        top = max(band.start - r, 0)
        bottom = min(band.end + r, height)
        block = np.zeros((band.height + 2 * r, width + 2 * r), dtype=np.uint8)
        offset = top - (band.start - r)
        block[offset:offset + bottom - top, r:r + width] = centers[top:bottom]
        dilated = cv2.dilate(block, disk_kernel(r))
        region[band.rows] = dilated[r:r + band.height, r:r + width]

    def repair_band(
        self,
        frame: np.ndarray,
        neighbors: Sequence[np.ndarray],
        region: np.ndarray,
        out: np.ndarray,
        band: Band,
    ) -> None:
        """Replace region pixels of a band with their temporal median."""
        rows = band.rows
        out[rows] = frame[rows]
        if not neighbors:
            return
        mask = region[rows].astype(bool)
        if not mask.any():
            return
        stack = np.sort(np.stack([n[rows][mask] for n in neighbors]), axis=0)
        out[rows][mask] = stack[len(neighbors) // 2]

    def repair_frame(
        self,
        frame: np.ndarray,
        neighbors: Sequence[np.ndarray],
        dispatcher: Optional[WorkDispatcher] = None,
    ) -> tuple[np.ndarray, int]:
        """Detect and repair blobs in one frame.

        Args:
            frame: Frame to repair
            neighbors: Temporally nearby frames (current frame excluded)
            dispatcher: Band pool (None = single band in the calling thread)

        Returns:
            Tuple of (new frame, number of confirmed centers)
        """
        height = frame.shape[0]
        centers = np.zeros(frame.shape, dtype=np.uint8)
        region = np.zeros(frame.shape, dtype=np.uint8)
        out = np.empty_like(frame)

        # Each pass is joined before the next reads its output
        self._run(dispatcher, height, lambda band: self.detect_band(frame, centers, band))
        count = int(centers.sum())
        if count == 0:
            return frame.copy(), 0
        self._run(dispatcher, height, lambda band: self.region_band(centers, region, band))
        self._run(dispatcher, height, lambda band: self.repair_band(frame, neighbors, region, out, band))
        return out, count

    @staticmethod
    def _run(dispatcher: Optional[WorkDispatcher], height: int, fn) -> None:
        if dispatcher is None:
            fn(Band(0, height))
        else:
            dispatcher.run_bands(height, fn)


def temporal_neighbors(frames: Sequence[np.ndarray], index: int, window: int) -> list[np.ndarray]:
    """Frames index - window .. index + window, excluding index and out-of-range ones."""
    first = max(index - window, 0)
    last = min(index + window, len(frames) - 1)
    return [frames[i] for i in range(first, last + 1) if i != index]
