"""Frame-sequence denoising pipeline system.

Build chainable denoising pipelines with fluent API:

    from video_denoise.pipeline import DenoisePipeline

    # Build and run pipeline on decoded frames
    result = (
        DenoisePipeline("clean")
        .add("temporal-direct", anomaly=30)
        .add("median", radius=1)
        .run(frames)
    )

    # Or process a video file
    pipeline = DenoisePipeline.load("pipeline.yaml")
    result = pipeline.process_video("input.mp4")

Inline step strings:

    pipeline = DenoisePipeline.from_steps_string(
        "blob:radius=4,temporal-neighborhood:reducer=mean,median"
    )

List available stages:

    from video_denoise.pipeline import StageRegistry

    # All stages
    print(StageRegistry.format_list())

    # By category
    print(StageRegistry.format_list("temporal"))
"""

from video_denoise.pipeline.base import (
    FilterStage,
    StageInfo,
    CATEGORY_SPATIAL,
    CATEGORY_TEMPORAL,
    CATEGORY_REGIONAL,
    ALL_CATEGORIES,
)
from video_denoise.pipeline.step import PipelineStep, parse_steps_string
from video_denoise.pipeline.registry import StageRegistry
from video_denoise.pipeline.pipeline import DenoisePipeline, PipelineResult, StepResult

__all__ = [
    # Base
    "FilterStage",
    "StageInfo",
    # Categories
    "CATEGORY_SPATIAL",
    "CATEGORY_TEMPORAL",
    "CATEGORY_REGIONAL",
    "ALL_CATEGORIES",
    # Step
    "PipelineStep",
    "parse_steps_string",
    # Registry
    "StageRegistry",
    # Pipeline
    "DenoisePipeline",
    "PipelineResult",
    "StepResult",
]
