#!/usr/bin/env python3
"""Example: Motion-compensated denoising with Farneback flow."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from video_denoise import Config
from video_denoise.flow import estimate_farneback
from video_denoise.pipeline import DenoisePipeline
from video_denoise.video_io import read_sequence, write_sequence


def main():
    if len(sys.argv) < 2:
        print("Usage: python estimate_flow.py <video> [flow.npz]")
        print("Example: python estimate_flow.py video.mp4 flow.npz")
        sys.exit(1)

    video_path = Path(sys.argv[1])
    flow_path = Path(sys.argv[2]) if len(sys.argv) > 2 else video_path.with_suffix(".npz")

    config = Config.from_env()
    frames = read_sequence(video_path, config.max_frames)

    print(f"Estimating optical flow: {video_path} ({len(frames)} frames)")
    flows = estimate_farneback(frames)
    flows.save(flow_path)
    print(f"Flow fields saved: {flow_path}")

    pipeline = DenoisePipeline("motion", config=config).add("temporal-motion").add("median")
    result = pipeline.run(frames, flows)

    output_path = config.output_dir / f"{video_path.stem}_motion.mp4"
    count = write_sequence(result.output, output_path, codec=config.codec)
    print(f"\nWrote {count} frames: {output_path}")


if __name__ == "__main__":
    main()
