"""Filter stages available to pipelines.

Each stage carries only the parameters it needs and is chosen once when
the pipeline is built.
"""

import logging
from typing import Any, Optional

import numpy as np

from video_denoise.filters.blob import BlobDetector, temporal_neighbors
from video_denoise.filters.median import median_band
from video_denoise.filters.temporal import (
    VARIANT_ADAPTIVE,
    VARIANT_DIRECT,
    VARIANT_MEDIAN,
    VARIANT_MOTION,
    TemporalCorrector,
)
from video_denoise.flow import FlowFields
from video_denoise.frames import PAD_CLAMP, FrameSequence, check_padding, check_radius
from video_denoise.parallel import WorkDispatcher
from video_denoise.pipeline.base import (
    CATEGORY_REGIONAL,
    CATEGORY_SPATIAL,
    CATEGORY_TEMPORAL,
    FilterStage,
)
from video_denoise.utils import InvalidArgumentError, check_integer

logger = logging.getLogger(__name__)


# =============================================================================
# Spatial Stages
# =============================================================================

class SpatialMedianStage(FilterStage):
    """Median filter every frame independently."""

    STAGE_ID = "median"
    STAGE_NAME = "Spatial Median"
    CATEGORY = CATEGORY_SPATIAL
    DESCRIPTION = "Square-window median against salt-and-pepper noise"

    def __init__(self, radius: int = 1, padding: str = PAD_CLAMP):
        super().__init__(radius=radius, padding=padding)
        self.radius = check_radius(radius)
        self.padding = check_padding(padding)

    def process_frame(self, index, source, output, dispatcher, flows) -> Optional[np.ndarray]:
        if self.radius == 0:
            return None
        padded = source.padded(index, self.radius, self.padding)
        out = np.empty_like(source[index])
        dispatcher.run_bands(source.height, lambda band: median_band(padded, out, band, self.radius))
        return out

    @classmethod
    def get_default_params(cls) -> dict[str, Any]:
        return {"radius": 1, "padding": PAD_CLAMP}


# =============================================================================
# Temporal Stages
# =============================================================================

class TemporalStage(FilterStage):
    """Shared frame walk of the temporal correction stages.

    Frame f is compared against f - before_offset and f + after_offset;
    frames missing either reference pass through unchanged. With chaining
    the before reference is the already-corrected output frame.
    """

    CATEGORY = CATEGORY_TEMPORAL
    VARIANT = VARIANT_DIRECT

    def __init__(
        self,
        stability: Optional[float] = None,
        anomaly: Optional[float] = None,
        blend: Optional[bool] = None,
        sensitivity: float = 1.2,
        before_offset: int = 1,
        after_offset: int = 2,
        chain: bool = True,
    ):
        super().__init__(
            stability=stability,
            anomaly=anomaly,
            blend=blend,
            sensitivity=sensitivity,
            before_offset=before_offset,
            after_offset=after_offset,
            chain=chain,
        )
        self.before_offset = check_integer(before_offset, "before_offset", minimum=1)
        self.after_offset = check_integer(after_offset, "after_offset", minimum=1)
        self.chain = chain
        self.corrector = self._build_corrector(stability, anomaly, blend, sensitivity)

    def _build_corrector(self, stability, anomaly, blend, sensitivity) -> TemporalCorrector:
        return TemporalCorrector(
            variant=self.VARIANT,
            stability_threshold=stability,
            anomaly_threshold=anomaly,
            blend=blend,
            sensitivity=sensitivity,
        )

    def references(self, index: int, length: int) -> Optional[tuple[int, int]]:
        """Indices of the before/after references, or None to copy through."""
        before = index - self.before_offset
        after = index + self.after_offset
        if before < 0 or after >= length:
            return None
        return before, after

    def flow_pair(self, index: int, flows: Optional[FlowFields]):
        return None, None

    def process_frame(self, index, source, output, dispatcher, flows) -> Optional[np.ndarray]:
        refs = self.references(index, len(source))
        if refs is None:
            return None
        flow_before, flow_after = self.flow_pair(index, flows)
        if self.corrector.uses_flow and (flow_before is None or flow_after is None):
            return None

        before = output[refs[0]] if self.chain else source[refs[0]]
        return self.corrector.correct_frame(
            source[index],
            before,
            source[refs[1]],
            flow_before=flow_before,
            flow_after=flow_after,
            dispatcher=dispatcher,
        )

    @classmethod
    def get_default_params(cls) -> dict[str, Any]:
        return {"before_offset": 1, "after_offset": 2, "chain": True}


class TemporalDirectStage(TemporalStage):
    """Compare single pixels across the reference frames."""

    STAGE_ID = "temporal-direct"
    STAGE_NAME = "Temporal Direct"
    DESCRIPTION = "Fixed-threshold per-pixel temporal correction"
    VARIANT = VARIANT_DIRECT


class TemporalNeighborhoodStage(TemporalStage):
    """Compare 3x3 neighborhood medians or means across the reference frames.

    With ``reducer="mean"`` the anomaly threshold also adapts to the local
    texture of the current frame and corrections are alpha-blended.
    """

    STAGE_ID = "temporal-neighborhood"
    STAGE_NAME = "Temporal Neighborhood"
    DESCRIPTION = "3x3 median, or texture-adaptive mean, temporal correction"

    REDUCERS = {"median": VARIANT_MEDIAN, "mean": VARIANT_ADAPTIVE}

    def __init__(self, reducer: str = "median", texture_weight: float = 0.5, **params):
        if reducer not in self.REDUCERS:
            raise InvalidArgumentError(f"Unknown reducer: {reducer}. Available: {', '.join(self.REDUCERS)}")
        self.VARIANT = self.REDUCERS[reducer]
        self.texture_weight = texture_weight
        super().__init__(**params)
        self.params = {"reducer": reducer, "texture_weight": texture_weight, **self.params}

    def _build_corrector(self, stability, anomaly, blend, sensitivity) -> TemporalCorrector:
        return TemporalCorrector(
            variant=self.VARIANT,
            stability_threshold=stability,
            anomaly_threshold=anomaly,
            blend=blend,
            texture_weight=self.texture_weight,
            sensitivity=sensitivity,
        )

    @classmethod
    def get_default_params(cls) -> dict[str, Any]:
        return {"reducer": "median", "texture_weight": 0.5, **super().get_default_params()}


class TemporalMotionCompensatedStage(TemporalStage):
    """Compare bilinear samples displaced by optical flow."""

    STAGE_ID = "temporal-motion"
    STAGE_NAME = "Temporal Motion-Compensated"
    DESCRIPTION = "Flow-displaced temporal correction (needs flow fields)"
    VARIANT = VARIANT_MOTION

    def prepare(self, frames: FrameSequence, flows: Optional[FlowFields]) -> None:
        if flows is None:
            raise InvalidArgumentError(f"Stage '{self.STAGE_ID}' requires flow fields")
        flows.validate(frames)

    def flow_pair(self, index: int, flows: Optional[FlowFields]):
        return flows.pair(index)


# =============================================================================
# Regional Stages
# =============================================================================

class BlobRepairStage(FilterStage):
    """Detect extreme-intensity blobs and rebuild them from nearby frames."""

    STAGE_ID = "blob"
    STAGE_NAME = "Blob Repair"
    CATEGORY = CATEGORY_REGIONAL
    DESCRIPTION = "Radial blob detection with temporal-median repair"

    def __init__(
        self,
        dark: int = 40,
        light: int = 215,
        radius: int = 5,
        min_votes: int = 6,
        window: int = 2,
        polarity: bool = False,
    ):
        super().__init__(
            dark=dark, light=light, radius=radius, min_votes=min_votes, window=window, polarity=polarity,
        )
        self.detector = BlobDetector(
            dark_threshold=dark,
            light_threshold=light,
            radius=radius,
            min_votes=min_votes,
            window=window,
            polarity=polarity,
        )
        self.blob_count = 0

    def prepare(self, frames: FrameSequence, flows: Optional[FlowFields]) -> None:
        self.blob_count = 0

    def process_frame(self, index, source, output, dispatcher: WorkDispatcher, flows) -> Optional[np.ndarray]:
        neighbors = temporal_neighbors(source, index, self.detector.window)
        repaired, count = self.detector.repair_frame(source[index], neighbors, dispatcher)
        if count == 0:
            return None
        self.blob_count += count
        logger.debug("Frame %d: %d blob centers repaired", index, count)
        return repaired

    def run(self, frames, dispatcher, flows=None, show_progress=False) -> FrameSequence:
        output = super().run(frames, dispatcher, flows, show_progress)
        logger.info("Blob repair: %d centers over %d frames", self.blob_count, len(frames))
        return output

    @classmethod
    def get_default_params(cls) -> dict[str, Any]:
        return {"dark": 40, "light": 215, "radius": 5, "min_votes": 6, "window": 2, "polarity": False}


BUILTIN_STAGES = [
    SpatialMedianStage,
    TemporalDirectStage,
    TemporalNeighborhoodStage,
    TemporalMotionCompensatedStage,
    BlobRepairStage,
]
