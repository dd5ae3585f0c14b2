#!/usr/bin/env python3
"""Example: Build and run denoising pipelines."""

from video_denoise.config import Config
from video_denoise.pipeline import DenoisePipeline, StageRegistry


def main():
    config = Config.from_env()
    config.ensure_dirs()

    # List available stages
    print("Available stages:")
    print(StageRegistry.format_list())

    # Method 1: Build pipeline with fluent API
    pipeline = (
        DenoisePipeline("clean", config=config)
        .add("temporal-direct", anomaly=30)
        .add("median", radius=1)
    )

    print(f"\nPipeline: {pipeline.describe()}")

    result = pipeline.process_video("input_video.mp4")

    print(f"\nCompleted: {result.completed_count}/{result.step_count}")
    print(f"Output: {result.output_video}")

    # Method 2: Build from inline string
    pipeline2 = DenoisePipeline.from_steps_string(
        "blob:radius=4,temporal-neighborhood:reducer=mean,texture_weight=0.8,median",
        name="archival",
        config=config,
    )

    print(f"\nArchival pipeline: {pipeline2.describe()}")

    # Method 3: Load from config file
    # pipeline3 = DenoisePipeline.load("pipeline.yaml", config=config)
    # result3 = pipeline3.process_video("input.mp4")

    # Method 4: Save pipeline for reuse
    pipeline.save("my_clean_pipeline.yaml")
    print("\nPipeline saved to my_clean_pipeline.yaml")


if __name__ == "__main__":
    main()
