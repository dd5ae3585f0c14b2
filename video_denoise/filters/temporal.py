"""Temporal-consistency correction.

A pixel is compared with a "before" and an "after" reference. When the two
references agree (the region is stable in time) and the pixel strays far
from their mean, it is treated as a short-lived artifact and pulled back to
the mean. Variants only differ in how the references are sampled:

    direct      single pixel at (y, x)
    median      median of the clamped 3x3 neighborhood
    adaptive    mean of the clamped 3x3 neighborhood, with the anomaly
                threshold widened by the local texture of the current frame
    motion      bilinear sample displaced by a per-pixel flow vector
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from video_denoise.filters.interpolate import bilinear_sample
from video_denoise.frames import clamped_windows
from video_denoise.parallel import Band, WorkDispatcher
from video_denoise.utils import InvalidArgumentError

VARIANT_DIRECT = "direct"
VARIANT_MEDIAN = "median"
VARIANT_ADAPTIVE = "adaptive"
VARIANT_MOTION = "motion"

TEMPORAL_VARIANTS = [VARIANT_DIRECT, VARIANT_MEDIAN, VARIANT_ADAPTIVE, VARIANT_MOTION]

# (stability, anomaly) thresholds per variant
DEFAULT_THRESHOLDS = {
    VARIANT_DIRECT: (50.0, 40.0),
    VARIANT_MEDIAN: (22.0, 15.0),
    VARIANT_ADAPTIVE: (30.0, 15.0),
    VARIANT_MOTION: (30.0, 15.0),
}

# Excess over the threshold at which alpha blending reaches full strength
BLEND_SPAN = 40.0


def neighborhood_median(grid: np.ndarray, rows: slice) -> np.ndarray:
    """Median of the clamped 3x3 neighborhood of every pixel in rows."""
    windows = clamped_windows(grid, rows)
    samples = windows.reshape(windows.shape[0], windows.shape[1], 9)
    return np.partition(samples, 4, axis=-1)[..., 4].astype(np.float64)


def neighborhood_mean(grid: np.ndarray, rows: slice) -> np.ndarray:
    """Mean of the clamped 3x3 neighborhood of every pixel in rows."""
    return clamped_windows(grid, rows).mean(axis=(-2, -1))


def neighborhood_std(grid: np.ndarray, rows: slice) -> np.ndarray:
    """Population standard deviation of the clamped 3x3 neighborhood."""
    return clamped_windows(grid, rows).std(axis=(-2, -1))


def displaced_sample(grid: np.ndarray, flow: np.ndarray, rows: slice) -> np.ndarray:
    """Sample grid at (x + dx, y + dy) for every pixel in rows.

    Args:
        grid: Reference frame
        flow: (H, W, 2) displacement field, channel 0 = dx, channel 1 = dy
        rows: Row slice of the frame being corrected
    """
    start, stop, _ = rows.indices(grid.shape[0])
    ys = np.arange(start, stop, dtype=np.float64)[:, None] + flow[rows, :, 1]
    xs = np.arange(grid.shape[1], dtype=np.float64)[None, :] + flow[rows, :, 0]
    return bilinear_sample(grid, xs, ys)


def correct_values(
    current: np.ndarray,
    ref_before: np.ndarray,
    ref_after: np.ndarray,
    stability_threshold: float,
    anomaly_threshold,
    blend: bool = False,
    sensitivity: float = 1.2,
) -> np.ndarray:
    """Apply the stability/anomaly rule element-wise.

    Args:
        current: Values being corrected (uint8)
        ref_before: Before reference values (NaN = no reference)
        ref_after: After reference values (NaN = no reference)
        stability_threshold: References must differ by less than this
        anomaly_threshold: Scalar or per-pixel deviation that triggers correction
        blend: Alpha-blend toward the expected value instead of replacing
        sensitivity: Scales the blend ramp (larger = gentler)

    Returns:
        Corrected uint8 values
    """
    value = current.astype(np.float64)
    expected = (ref_before + ref_after) / 2.0
    if not blend:
        # Replacement compares against and writes the floored mean
        expected = np.floor(expected)
    deviation = np.abs(expected - value)

    with np.errstate(invalid="ignore"):
        replace = (np.abs(ref_before - ref_after) < stability_threshold) & (deviation > anomaly_threshold)

    if blend:
        alpha = np.clip((deviation - anomaly_threshold) / (BLEND_SPAN * sensitivity), 0.0, 1.0)
        candidate = np.floor((1.0 - alpha) * value + alpha * expected + 0.5)
    else:
        candidate = expected

    corrected = np.where(replace, candidate, value)
    return np.clip(corrected, 0, 255).astype(np.uint8)


@dataclass
class TemporalCorrector:
    """Configured temporal correction for one variant.

    Thresholds left as None take the variant's defaults; blending defaults
    to on for the adaptive variant only.
    """

    variant: str = VARIANT_DIRECT
    stability_threshold: Optional[float] = None
    anomaly_threshold: Optional[float] = None
    blend: Optional[bool] = None
    texture_weight: float = 0.5
    sensitivity: float = 1.2

    def __post_init__(self):
        if self.variant not in TEMPORAL_VARIANTS:
            raise InvalidArgumentError(
                f"Unknown temporal variant: {self.variant}. Available: {', '.join(TEMPORAL_VARIANTS)}"
            )
        stability, anomaly = DEFAULT_THRESHOLDS[self.variant]
        if self.stability_threshold is None:
            self.stability_threshold = stability
        if self.anomaly_threshold is None:
            self.anomaly_threshold = anomaly
        if self.blend is None:
            self.blend = self.variant == VARIANT_ADAPTIVE

        if self.stability_threshold < 0 or self.anomaly_threshold < 0:
            raise InvalidArgumentError("Thresholds must not be negative")
        if self.texture_weight < 0:
            raise InvalidArgumentError("Texture weight must not be negative")
        if self.sensitivity <= 0:
            raise InvalidArgumentError("Blend sensitivity must be positive")

    @property
    def uses_flow(self) -> bool:
        return self.variant == VARIANT_MOTION

    def references(
        self,
        before: np.ndarray,
        after: np.ndarray,
        rows: slice,
        flow_before: Optional[np.ndarray] = None,
        flow_after: Optional[np.ndarray] = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Reference values of a row range for this variant."""
        if self.variant == VARIANT_DIRECT:
            return before[rows].astype(np.float64), after[rows].astype(np.float64)
        if self.variant == VARIANT_MEDIAN:
            return neighborhood_median(before, rows), neighborhood_median(after, rows)
        if self.variant == VARIANT_ADAPTIVE:
            return neighborhood_mean(before, rows), neighborhood_mean(after, rows)
        return displaced_sample(before, flow_before, rows), displaced_sample(after, flow_after, rows)

    def correct_band(
        self,
        current: np.ndarray,
        before: np.ndarray,
        after: np.ndarray,
        out: np.ndarray,
        band: Band,
        flow_before: Optional[np.ndarray] = None,
        flow_after: Optional[np.ndarray] = None,
    ) -> None:
        """Correct the rows of one band into out."""
        rows = band.rows
        ref_before, ref_after = self.references(before, after, rows, flow_before, flow_after)

        threshold = self.anomaly_threshold
        if self.variant == VARIANT_ADAPTIVE and self.texture_weight:
            threshold = threshold + self.texture_weight * neighborhood_std(current, rows)

        out[rows] = correct_values(
            current[rows],
            ref_before,
            ref_after,
            self.stability_threshold,
            threshold,
            blend=self.blend,
            sensitivity=self.sensitivity,
        )

    def correct_frame(
        self,
        current: np.ndarray,
        before: np.ndarray,
        after: np.ndarray,
        flow_before: Optional[np.ndarray] = None,
        flow_after: Optional[np.ndarray] = None,
        dispatcher: Optional[WorkDispatcher] = None,
    ) -> np.ndarray:
        """Correct a whole frame against its references.

        Args:
            current: Frame being corrected
            before: Before reference frame
            after: After reference frame
            flow_before: Displacement toward ``before`` (motion variant)
            flow_after: Displacement toward ``after`` (motion variant)
            dispatcher: Band pool (None = single band in the calling thread)

        Returns:
            New corrected frame
        """
        if before.shape != current.shape or after.shape != current.shape:
            raise InvalidArgumentError(
                f"Reference frames {before.shape}/{after.shape} do not match {current.shape}"
            )
        if self.uses_flow:
            expected = current.shape + (2,)
            for name, flow in (("before", flow_before), ("after", flow_after)):
                if flow is None or flow.shape != expected:
                    shape = None if flow is None else flow.shape
                    raise InvalidArgumentError(f"Flow field '{name}' has shape {shape}, expected {expected}")

        out = np.empty_like(current)

        def work(band: Band) -> None:
            self.correct_band(current, before, after, out, band, flow_before, flow_after)

        if dispatcher is None:
            work(Band(0, current.shape[0]))
        else:
            dispatcher.run_bands(current.shape[0], work)
        return out
