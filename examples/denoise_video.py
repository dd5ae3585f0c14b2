#!/usr/bin/env python3
"""Example: Denoise a video with the configured stage sequence."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from video_denoise import Config
from video_denoise.pipeline import DenoisePipeline
from video_denoise.utils import setup_logging


def main():
    if len(sys.argv) < 2:
        print("Usage: python denoise_video.py <video> [variant] [radius]")
        print("Example: python denoise_video.py video.mp4 adaptive 2")
        print("\nVariant: direct, median, adaptive, none (default: direct)")
        sys.exit(1)

    video_path = sys.argv[1]
    variant = sys.argv[2] if len(sys.argv) > 2 else "direct"
    radius = int(sys.argv[3]) if len(sys.argv) > 3 else 1

    config = Config.from_env()
    config.temporal_variant = variant
    config.median_radius = radius
    setup_logging(config.log_level)

    pipeline = DenoisePipeline.from_config(config, name=variant)
    print(f"Denoising: {video_path}")
    print(f"Stages: {pipeline.describe()}")

    result = pipeline.process_video(video_path)

    print(f"\nOutput: {result.output_video}")


if __name__ == "__main__":
    main()
