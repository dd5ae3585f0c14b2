"""Pipeline executor for chaining filter stages."""

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

import yaml

from video_denoise.flow import FlowFields, estimate_farneback
from video_denoise.frames import FrameSequence
from video_denoise.parallel import WorkDispatcher
from video_denoise.pipeline.base import CATEGORY_TEMPORAL, FilterStage
from video_denoise.pipeline.registry import StageRegistry
from video_denoise.pipeline.step import PipelineStep, parse_steps_string
from video_denoise.utils import InvalidArgumentError, format_duration, get_output_filename

if TYPE_CHECKING:
    from video_denoise.config import Config

logger = logging.getLogger(__name__)

# Temporal stages need a frame on each side of the one being corrected
MIN_TEMPORAL_FRAMES = 3


@dataclass
class StepResult:
    """Result from a single pipeline step."""

    step: PipelineStep
    skipped: bool = False
    duration_seconds: float = 0.0


@dataclass
class PipelineResult:
    """Result from running a complete pipeline."""

    pipeline_name: str
    steps: list[PipelineStep]
    output: Optional[FrameSequence] = None
    step_results: list[StepResult] = field(default_factory=list)
    input_video: Optional[Path] = None
    output_video: Optional[Path] = None
    total_duration: float = 0.0

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def completed_count(self) -> int:
        return sum(1 for r in self.step_results if not r.skipped)

    def describe(self) -> str:
        """Get human-readable description of pipeline execution."""
        step_names = " → ".join(s.display_name for s in self.steps)
        return f"{step_names} ({self.step_count} steps)"

    def save_summary(self, output_dir: Path) -> Path:
        """Save pipeline execution summary to JSON.

        Args:
            output_dir: Output directory

        Returns:
            Path to summary file
        """
        summary = {
            "pipeline": self.pipeline_name,
            "input": str(self.input_video) if self.input_video else None,
            "output": str(self.output_video) if self.output_video else None,
            "frames": len(self.output) if self.output is not None else 0,
            "total_duration": self.total_duration,
            "timestamp": datetime.now().isoformat(),
            "steps": [
                {
                    "stage": r.step.stage_id,
                    "params": r.step.params,
                    "skipped": r.skipped,
                    "duration": r.duration_seconds,
                }
                for r in self.step_results
            ],
        }

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        summary_path = output_dir / f"pipeline_{self.pipeline_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        with open(summary_path, "w") as f:
            json.dump(summary, f, indent=2)

        return summary_path


class DenoisePipeline:
    """Chainable frame-sequence denoising pipeline.

    Build pipelines with fluent API:
        pipeline = DenoisePipeline("clean").add("temporal-direct").add("median", radius=1)
        result = pipeline.run(frames)

    Or from a configuration:
        pipeline = DenoisePipeline.from_config(config)
        result = pipeline.process_video("input.mp4")

    Stages run strictly one after another. Each stage reads the previous
    stage's complete output, so a failure anywhere leaves no partial result.
    """

    def __init__(
        self,
        name: str = "pipeline",
        description: str = "",
        config: Optional["Config"] = None,
    ):
        """Initialize pipeline.

        Args:
            name: Pipeline name for identification
            description: Human-readable description
            config: Configuration object (worker count, output directory, codec)
        """
        self.name = name
        self.description = description
        self._config = config
        self.steps: list[PipelineStep] = []

    @property
    def config(self) -> "Config":
        """Get configuration, creating default if needed."""
        if self._config is None:
            from video_denoise.config import Config
            self._config = Config.from_env()
        return self._config

    def add(self, stage_id: str, **params) -> "DenoisePipeline":
        """Add a stage to the pipeline.

        Args:
            stage_id: Stage identifier
            **params: Stage parameters

        Returns:
            Self for chaining
        """
        self.steps.append(PipelineStep(stage_id=stage_id, params=params))
        return self

    def add_step(self, step: PipelineStep) -> "DenoisePipeline":
        """Add a pre-configured step."""
        self.steps.append(step)
        return self

    def clear(self) -> "DenoisePipeline":
        """Remove all steps."""
        self.steps.clear()
        return self

    def build_stages(self) -> list[FilterStage]:
        """Instantiate every stage, rejecting bad parameters up front.

        Raises:
            InvalidArgumentError: If a stage is unknown or misconfigured
        """
        return [StageRegistry.create(step) for step in self.steps]

    def run(
        self,
        frames: FrameSequence,
        flows: Optional[FlowFields] = None,
        show_progress: bool = True,
    ) -> PipelineResult:
        """Run every stage over a frame sequence.

        Args:
            frames: Input frames (left untouched)
            flows: Flow fields for motion-compensated stages
            show_progress: Show per-stage progress bars

        Returns:
            PipelineResult holding the final frames

        Raises:
            InvalidArgumentError: On invalid stage parameters or inputs
            WorkerFailureError: If a band worker fails
        """
        if len(frames) == 0:
            raise InvalidArgumentError("Cannot denoise an empty frame sequence")

        stages = self.build_stages()
        result = PipelineResult(pipeline_name=self.name, steps=self.steps.copy())

        if not stages:
            logger.warning("Pipeline has no steps; frames pass through unchanged")
            result.output = frames.copy()
            return result

        logger.info("Pipeline: %s", self.describe())
        start_time = time.time()
        current = frames

        with WorkDispatcher(self.config.workers) as dispatcher:
            logger.debug("Using %d band workers", dispatcher.workers)
            for i, (step, stage) in enumerate(zip(self.steps, stages), 1):
                if stage.CATEGORY == CATEGORY_TEMPORAL and len(current) < MIN_TEMPORAL_FRAMES:
                    logger.info(
                        "[%d/%d] %s skipped: needs %d frames, got %d",
                        i, len(stages), step.display_name, MIN_TEMPORAL_FRAMES, len(current),
                    )
                    result.step_results.append(StepResult(step=step, skipped=True))
                    continue

                step_start = time.time()
                current = stage.run(current, dispatcher, flows, show_progress)
                step_duration = time.time() - step_start
                result.step_results.append(StepResult(step=step, duration_seconds=step_duration))
                logger.info("[%d/%d] %s done (%.2fs)", i, len(stages), stage.describe(), step_duration)

        result.output = current if current is not frames else frames.copy()
        result.total_duration = time.time() - start_time
        logger.info(
            "Pipeline completed: %d/%d steps in %s",
            result.completed_count, result.step_count, format_duration(result.total_duration),
        )
        return result

    def process_video(
        self,
        video_path: Path | str,
        output_dir: Optional[Path] = None,
        flows: Optional[FlowFields] = None,
        estimate_flow: bool = False,
        show_progress: bool = True,
    ) -> PipelineResult:
        """Denoise a video file and write the result.

        Args:
            video_path: Path to input video
            output_dir: Output directory (uses config default if None)
            flows: Precomputed flow fields
            estimate_flow: Estimate Farneback flow when none is given
            show_progress: Show progress bars

        Returns:
            PipelineResult with the output video path set
        """
        from video_denoise.video_io import ProcessingResult, read_sequence, write_sequence

        video_path = Path(video_path)
        output_dir = Path(output_dir or self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        # Fail on bad parameters before decoding anything
        self.build_stages()

        frames = read_sequence(video_path, self.config.max_frames, show_progress)
        logger.info("Read %d frames (%dx%d) from %s", len(frames), frames.width, frames.height, video_path)

        if flows is None and estimate_flow:
            flows = estimate_farneback(frames, show_progress=show_progress, **self._flow_offsets())

        result = self.run(frames, flows, show_progress)

        output_path = get_output_filename(video_path, "denoise", self.name, output_dir)
        written = write_sequence(result.output, output_path, codec=self.config.codec)
        result.input_video = video_path
        result.output_video = output_path
        logger.info("Wrote %d frames to %s", written, output_path)

        processing = ProcessingResult(video_path, output_dir, "denoise")
        processing.add_output(
            output_path,
            pipeline=str(self),
            frame_count=written,
            duration_seconds=result.total_duration,
        )
        processing.save_metadata()
        result.save_summary(output_dir)

        return result

    def _flow_offsets(self) -> dict[str, int]:
        """Reference offsets of the first motion stage, for flow estimation."""
        for step in self.steps:
            if step.stage_id == "temporal-motion":
                return {
                    "before_offset": step.params.get("before_offset", 1),
                    "after_offset": step.params.get("after_offset", 2),
                }
        return {}

    def describe(self) -> str:
        """Get human-readable description of pipeline."""
        step_names = " → ".join(s.display_name for s in self.steps)
        return f"{step_names} ({len(self.steps)} steps)"

    def __str__(self) -> str:
        return ",".join(str(s) for s in self.steps)

    @classmethod
    def from_config(cls, config: "Config", name: str = "denoise") -> "DenoisePipeline":
        """Build the stage sequence described by a configuration."""
        pipeline = cls(name=name, config=config)
        for step in config.stage_steps():
            pipeline.add_step(step)
        return pipeline

    def to_dict(self) -> dict[str, Any]:
        """Serialize pipeline to dictionary."""
        return {
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], config: Optional["Config"] = None) -> "DenoisePipeline":
        """Create pipeline from dictionary.

        Args:
            data: Dictionary with name, description, steps
            config: Configuration object

        Returns:
            DenoisePipeline instance
        """
        pipeline = cls(
            name=data.get("name", "pipeline"),
            description=data.get("description", ""),
            config=config,
        )

        for step_data in data.get("steps", []):
            pipeline.add_step(PipelineStep.from_dict(step_data))

        return pipeline

    @classmethod
    def from_steps_string(
        cls,
        steps_str: str,
        name: str = "inline",
        config: Optional["Config"] = None,
    ) -> "DenoisePipeline":
        """Create pipeline from inline steps string.

        Args:
            steps_str: Steps specification (e.g., "temporal-direct,median:radius=2")
            name: Pipeline name
            config: Configuration object

        Returns:
            DenoisePipeline instance
        """
        pipeline = cls(name=name, config=config)
        for step in parse_steps_string(steps_str):
            pipeline.add_step(step)
        return pipeline

    def save(self, path: Path | str) -> Path:
        """Save pipeline definition to file.

        Supports YAML and JSON formats based on extension.

        Args:
            path: Output file path (.yaml, .yml, or .json)

        Returns:
            Path written
        """
        path = Path(path)

        with open(path, "w") as f:
            if path.suffix in (".yaml", ".yml"):
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

        logger.info("Pipeline saved: %s", path)
        return path

    @classmethod
    def load(cls, path: Path | str, config: Optional["Config"] = None) -> "DenoisePipeline":
        """Load pipeline from a YAML or JSON file.

        Raises:
            InvalidArgumentError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.exists():
            raise InvalidArgumentError(f"Pipeline file not found: {path}")

        with open(path) as f:
            try:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise InvalidArgumentError(f"Cannot parse pipeline file {path}: {e}") from e

        if not isinstance(data, dict):
            raise InvalidArgumentError(f"Pipeline file {path} must hold a mapping")
        return cls.from_dict(data, config)
