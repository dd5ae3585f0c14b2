"""Configuration management for Video Denoise."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from dotenv import load_dotenv

from video_denoise.frames import PAD_CLAMP, PADDING_MODES
from video_denoise.parallel import default_worker_count
from video_denoise.utils import InvalidArgumentError

if TYPE_CHECKING:
    from video_denoise.pipeline.step import PipelineStep

TEMPORAL_CHOICES = ["direct", "median", "adaptive", "motion", "none"]
BLOB_PLACEMENTS = ["off", "before", "after"]


@dataclass
class Config:
    """Configuration for Video Denoise."""

    # Default output directory
    output_dir: Path = field(default_factory=lambda: Path("./output"))

    # Video processing settings
    max_frames: Optional[int] = None
    codec: str = "mp4v"
    log_level: str = "INFO"

    # Band workers per stage (None = hardware parallelism)
    workers: Optional[int] = None

    # Spatial median
    median_radius: int = 1
    median_passes: int = 1
    padding: str = PAD_CLAMP

    # Temporal correction; None thresholds take the variant defaults
    temporal_variant: str = "direct"
    stability_threshold: Optional[float] = None
    anomaly_threshold: Optional[float] = None
    blend: Optional[bool] = None
    texture_weight: float = 0.5
    blend_sensitivity: float = 1.2
    before_offset: int = 1
    after_offset: int = 2
    chain_temporal: bool = True

    # Blob repair
    blob_repair: str = "off"
    blob_dark_threshold: int = 40
    blob_light_threshold: int = 215
    blob_radius: int = 5
    blob_min_votes: int = 6
    blob_window: int = 2
    blob_polarity: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        load_dotenv()

        output_dir = os.getenv("VIDDENOISE_OUTPUT_DIR")
        workers = os.getenv("VIDDENOISE_WORKERS")
        max_frames = os.getenv("VIDDENOISE_MAX_FRAMES")

        try:
            return cls(
                output_dir=Path(output_dir) if output_dir else Path("./output"),
                workers=int(workers) if workers else None,
                max_frames=int(max_frames) if max_frames else None,
                log_level=os.getenv("VIDDENOISE_LOG_LEVEL", "INFO"),
                padding=os.getenv("VIDDENOISE_PADDING", PAD_CLAMP),
                temporal_variant=os.getenv("VIDDENOISE_VARIANT", "direct"),
            )
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid environment setting: {e}") from e

    def check(self) -> None:
        """Reject invalid settings before any work starts.

        Raises:
            InvalidArgumentError: On the first invalid value
        """
        if self.workers is not None and self.workers < 1:
            raise InvalidArgumentError(f"workers must be at least 1, got {self.workers}")
        if self.median_radius < 0:
            raise InvalidArgumentError(f"median_radius must not be negative, got {self.median_radius}")
        if self.median_passes < 1:
            raise InvalidArgumentError(f"median_passes must be at least 1, got {self.median_passes}")
        if self.padding not in PADDING_MODES:
            raise InvalidArgumentError(f"padding must be one of {PADDING_MODES}, got {self.padding}")
        if self.temporal_variant not in TEMPORAL_CHOICES:
            raise InvalidArgumentError(f"temporal_variant must be one of {TEMPORAL_CHOICES}, got {self.temporal_variant}")
        if self.blob_repair not in BLOB_PLACEMENTS:
            raise InvalidArgumentError(f"blob_repair must be one of {BLOB_PLACEMENTS}, got {self.blob_repair}")
        if self.before_offset < 1 or self.after_offset < 1:
            raise InvalidArgumentError("Temporal offsets must be at least 1")
        if self.max_frames is not None and self.max_frames < 1:
            raise InvalidArgumentError(f"max_frames must be at least 1, got {self.max_frames}")

    def validate(self) -> list[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        cpus = default_worker_count()
        if self.workers is not None and self.workers > cpus:
            warnings.append(f"{self.workers} workers requested but only {cpus} CPUs available")

        if self.padding != PAD_CLAMP and self.median_radius > 1:
            warnings.append("Zero padding darkens frame borders with large median radii")

        return warnings

    def ensure_dirs(self) -> None:
        """Create required directories."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def temporal_params(self) -> dict:
        """Parameters shared by every temporal stage."""
        params = {
            "before_offset": self.before_offset,
            "after_offset": self.after_offset,
            "chain": self.chain_temporal,
            "sensitivity": self.blend_sensitivity,
        }
        if self.stability_threshold is not None:
            params["stability"] = self.stability_threshold
        if self.anomaly_threshold is not None:
            params["anomaly"] = self.anomaly_threshold
        if self.blend is not None:
            params["blend"] = self.blend
        return params

    def stage_steps(self) -> list["PipelineStep"]:
        """Build the ordered pipeline steps described by this configuration.

        Order: blob repair (before), temporal pass, median passes,
        blob repair (after).
        """
        from video_denoise.pipeline.step import PipelineStep

        self.check()
        steps = []

        blob = PipelineStep("blob", {
            "dark": self.blob_dark_threshold,
            "light": self.blob_light_threshold,
            "radius": self.blob_radius,
            "min_votes": self.blob_min_votes,
            "window": self.blob_window,
            "polarity": self.blob_polarity,
        })
        if self.blob_repair == "before":
            steps.append(blob)

        params = self.temporal_params()
        if self.temporal_variant == "direct":
            steps.append(PipelineStep("temporal-direct", params))
        elif self.temporal_variant == "median":
            steps.append(PipelineStep("temporal-neighborhood", {"reducer": "median", **params}))
        elif self.temporal_variant == "adaptive":
            steps.append(PipelineStep("temporal-neighborhood", {
                "reducer": "mean",
                "texture_weight": self.texture_weight,
                **params,
            }))
        elif self.temporal_variant == "motion":
            steps.append(PipelineStep("temporal-motion", params))

        for _ in range(self.median_passes):
            steps.append(PipelineStep("median", {"radius": self.median_radius, "padding": self.padding}))

        if self.blob_repair == "after":
            steps.append(blob)

        return steps
