"""Command line interface for Video Denoise."""

from pathlib import Path
from typing import Optional

import click

from video_denoise import __version__
from video_denoise.config import BLOB_PLACEMENTS, TEMPORAL_CHOICES, Config
from video_denoise.frames import PADDING_MODES
from video_denoise.utils import DenoiseError, setup_logging

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Video Denoise - Parallel tiled denoising of grayscale video.

    Removes salt-and-pepper noise, flicker and dust blobs with spatial
    median filtering, temporal correction and blob repair. Every frame is
    split into row bands processed in parallel.

    Examples:

        viddenoise denoise video.mp4

        viddenoise denoise video.mp4 --variant adaptive --passes 2

        viddenoise denoise video.mp4 --variant motion --estimate-flow

        viddenoise pipeline run video.mp4 -s "blob,temporal-direct,median"
    """
    pass


# ============================================================================
# DENOISE Command
# ============================================================================
@cli.command()
@click.argument("video_path", type=click.Path(exists=True))
@click.option("--output-dir", "-o", type=click.Path(), help="Output directory")
@click.option("--radius", "-r", type=int, default=1, show_default=True, help="Median window radius")
@click.option("--passes", "-p", type=int, default=1, show_default=True, help="Median passes")
@click.option("--variant", "-v", type=click.Choice(TEMPORAL_CHOICES), help="Temporal correction variant")
@click.option("--stability", type=float, help="Stability threshold (variant default if unset)")
@click.option("--anomaly", type=float, help="Anomaly threshold (variant default if unset)")
@click.option("--blend/--no-blend", default=None, help="Alpha-blend temporal corrections")
@click.option("--workers", "-j", type=int, help="Band workers per frame (default: CPU count)")
@click.option("--padding", type=click.Choice(PADDING_MODES), help="Median border handling")
@click.option("--blob", type=click.Choice(BLOB_PLACEMENTS), default="off", show_default=True, help="Blob repair placement")
@click.option("--blob-dark", type=int, default=40, show_default=True, help="Dark blob threshold")
@click.option("--blob-light", type=int, default=215, show_default=True, help="Light blob threshold")
@click.option("--blob-radius", type=int, default=5, show_default=True, help="Blob sampling radius")
@click.option("--blob-votes", type=int, default=6, show_default=True, help="Radial samples needed to confirm a blob")
@click.option("--blob-window", type=int, default=2, show_default=True, help="Frames on each side used for repair")
@click.option("--blob-polarity", is_flag=True, help="Light blobs need a light ring instead of a dark one")
@click.option("--texture-weight", type=float, default=0.5, show_default=True, help="Local texture weight (adaptive)")
@click.option("--sensitivity", type=float, default=1.2, show_default=True, help="Blend ramp sensitivity")
@click.option("--before-offset", type=int, default=1, show_default=True, help="Distance to the before reference")
@click.option("--after-offset", type=int, default=2, show_default=True, help="Distance to the after reference")
@click.option("--flow", "flow_path", type=click.Path(exists=True), help="Flow fields (.npz) for --variant motion")
@click.option("--estimate-flow", is_flag=True, help="Estimate Farneback flow for --variant motion")
@click.option("--max-frames", type=int, help="Only process the first N frames")
@click.option("--no-chain", is_flag=True, help="Compare against uncorrected before frames")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Log level")
def denoise(
    video_path: str,
    output_dir: Optional[str],
    radius: int,
    passes: int,
    variant: Optional[str],
    stability: Optional[float],
    anomaly: Optional[float],
    blend: Optional[bool],
    workers: Optional[int],
    padding: Optional[str],
    blob: str,
    blob_dark: int,
    blob_light: int,
    blob_radius: int,
    blob_votes: int,
    blob_window: int,
    blob_polarity: bool,
    texture_weight: float,
    sensitivity: float,
    before_offset: int,
    after_offset: int,
    flow_path: Optional[str],
    estimate_flow: bool,
    max_frames: Optional[int],
    no_chain: bool,
    log_level: Optional[str],
) -> None:
    """Denoise a grayscale video.

    Stage order: blob repair (before), temporal correction, median
    passes, blob repair (after).

    Examples:

        viddenoise denoise video.mp4 -r 2 -j 8

        viddenoise denoise video.mp4 --variant median --anomaly 12

        viddenoise denoise video.mp4 --variant motion --flow flow.npz

        viddenoise denoise video.mp4 --blob before --variant none
    """
    from video_denoise.flow import FlowFields
    from video_denoise.pipeline import DenoisePipeline

    try:
        config = Config.from_env()
        if log_level:
            config.log_level = log_level.upper()
        setup_logging(config.log_level)

        if output_dir:
            config.output_dir = Path(output_dir)
        if workers is not None:
            config.workers = workers
        if padding:
            config.padding = padding
        if variant:
            config.temporal_variant = variant
        if max_frames is not None:
            config.max_frames = max_frames
        config.median_radius = radius
        config.median_passes = passes
        config.stability_threshold = stability
        config.anomaly_threshold = anomaly
        config.blend = blend
        config.chain_temporal = not no_chain
        config.blob_repair = blob
        config.blob_dark_threshold = blob_dark
        config.blob_light_threshold = blob_light
        config.blob_radius = blob_radius
        config.blob_min_votes = blob_votes
        config.blob_window = blob_window
        config.blob_polarity = blob_polarity
        config.texture_weight = texture_weight
        config.blend_sensitivity = sensitivity
        config.before_offset = before_offset
        config.after_offset = after_offset

        pipe = DenoisePipeline.from_config(config, name=config.temporal_variant)
        config.ensure_dirs()
        _show_warnings(config)

        flows = FlowFields.load(Path(flow_path)) if flow_path else None
        if config.temporal_variant == "motion" and flows is None and not estimate_flow:
            raise DenoiseError("--variant motion needs --flow or --estimate-flow")

        click.echo("\nVideo Denoise - Denoise")
        click.echo("=" * 40)
        click.echo(f"Input: {video_path}")
        click.echo(f"Stages: {pipe.describe()}")
        click.echo("")

        result = pipe.process_video(video_path, config.output_dir, flows=flows, estimate_flow=estimate_flow)

        click.echo("")
        click.secho("Denoising complete!", fg="green")
        click.echo(f"Output: {result.output_video}")

    except DenoiseError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


# ============================================================================
# FLOW Command
# ============================================================================
@cli.command()
@click.argument("video_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Path(), help="Output .npz file")
@click.option("--before-offset", type=int, default=1, show_default=True, help="Distance to the before frame")
@click.option("--after-offset", type=int, default=2, show_default=True, help="Distance to the after frame")
@click.option("--max-frames", type=int, help="Only process the first N frames")
def flow(
    video_path: str,
    output: Optional[str],
    before_offset: int,
    after_offset: int,
    max_frames: Optional[int],
) -> None:
    """Estimate optical flow fields for motion-compensated denoising.

    Examples:

        viddenoise flow video.mp4 -o flow.npz

        viddenoise denoise video.mp4 --variant motion --flow flow.npz
    """
    from video_denoise.flow import estimate_farneback
    from video_denoise.video_io import read_sequence

    try:
        config = Config.from_env()
        setup_logging(config.log_level)
        if max_frames is not None:
            config.max_frames = max_frames

        video = Path(video_path)
        output_path = Path(output) if output else config.output_dir / f"{video.stem}_flow.npz"

        frames = read_sequence(video, config.max_frames)
        fields = estimate_farneback(frames, before_offset, after_offset)
        fields.save(output_path)

        click.secho(f"Flow fields saved: {output_path}", fg="green")

    except DenoiseError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


# ============================================================================
# PIPELINE Commands
# ============================================================================
@cli.group()
def pipeline() -> None:
    """Pipeline processing - chain filter stages.

    Examples:

        viddenoise pipeline list

        viddenoise pipeline run video.mp4 -s "temporal-direct,median:radius=2"

        viddenoise pipeline create clean.yaml -s "blob,temporal-neighborhood:reducer=mean"
    """
    pass


@pipeline.command("run")
@click.argument("video_path", type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), help="Pipeline config file (YAML/JSON)")
@click.option("--steps", "-s", help="Inline steps: 'temporal-direct,median:radius=2'")
@click.option("--output-dir", "-o", type=click.Path(), help="Output directory")
@click.option("--workers", "-j", type=int, help="Band workers per frame")
@click.option("--flow", "flow_path", type=click.Path(exists=True), help="Flow fields (.npz)")
@click.option("--estimate-flow", is_flag=True, help="Estimate Farneback flow if none given")
def pipeline_run(
    video_path: str,
    config: Optional[str],
    steps: Optional[str],
    output_dir: Optional[str],
    workers: Optional[int],
    flow_path: Optional[str],
    estimate_flow: bool,
) -> None:
    """Run a denoising pipeline on a video.

    Use --config to load from file or --steps for inline specification.

    Examples:

        viddenoise pipeline run video.mp4 --config clean.yaml

        viddenoise pipeline run video.mp4 -s "temporal-motion,median" --estimate-flow
    """
    from video_denoise.flow import FlowFields
    from video_denoise.pipeline import DenoisePipeline

    try:
        cfg = Config.from_env()
        setup_logging(cfg.log_level)
        if output_dir:
            cfg.output_dir = Path(output_dir)
        if workers is not None:
            cfg.workers = workers
        cfg.check()
        cfg.ensure_dirs()

        if config:
            pipe = DenoisePipeline.load(config, cfg)
        elif steps:
            pipe = DenoisePipeline.from_steps_string(steps, name="inline", config=cfg)
        else:
            raise DenoiseError("Specify --config or --steps")

        flows = FlowFields.load(Path(flow_path)) if flow_path else None

        click.echo("\nVideo Denoise - Pipeline")
        click.echo("=" * 40)
        result = pipe.process_video(video_path, cfg.output_dir, flows=flows, estimate_flow=estimate_flow)

        click.secho("\nPipeline complete!", fg="green")
        click.echo(f"Completed {result.completed_count}/{result.step_count} steps")
        click.echo(f"Output: {result.output_video}")

    except DenoiseError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


@pipeline.command("list")
@click.option("--category", "-c", help="Filter by category (spatial, temporal, regional)")
def pipeline_list(category: Optional[str]) -> None:
    """List available filter stages.

    Examples:

        viddenoise pipeline list

        viddenoise pipeline list --category temporal
    """
    from video_denoise.pipeline import StageRegistry

    click.echo("\n" + StageRegistry.format_list(category))


@pipeline.command("create")
@click.argument("output_file", type=click.Path())
@click.option("--steps", "-s", required=True, help="Steps: 'blob,temporal-direct,median:radius=2'")
@click.option("--name", "-n", default="my_pipeline", help="Pipeline name")
@click.option("--description", "-d", default="", help="Pipeline description")
def pipeline_create(
    output_file: str,
    steps: str,
    name: str,
    description: str,
) -> None:
    """Create a pipeline config file from steps.

    Examples:

        viddenoise pipeline create clean.yaml --steps "temporal-direct,median"

        viddenoise pipeline create heavy.json -s "blob:radius=4,median:radius=2" -n heavy
    """
    from video_denoise.pipeline import DenoisePipeline

    try:
        pipe = DenoisePipeline.from_steps_string(steps, name=name, config=Config())
        # Reject unknown stages and bad parameters before writing
        pipe.build_stages()
        pipe.description = description
        path = pipe.save(Path(output_file))
        click.secho(f"Pipeline saved: {path}", fg="green")

    except DenoiseError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


# ============================================================================
# INFO Command
# ============================================================================
@cli.command()
def info() -> None:
    """Show system and video backend information."""
    import cv2
    import numpy as np

    from video_denoise.parallel import default_worker_count

    try:
        config = Config.from_env()

        click.echo("\nVideo Denoise - System Info")
        click.echo("=" * 40)
        click.echo(f"Version: {__version__}")
        click.echo(f"NumPy: {np.__version__}")
        click.echo(f"OpenCV: {cv2.__version__}")
        backends = [cv2.videoio_registry.getBackendName(b) for b in cv2.videoio_registry.getBackends()]
        click.echo(f"Video backends: {', '.join(backends) or 'none'}")
        click.echo(f"CPUs: {default_worker_count()}")

        click.echo(f"\nWorkers: {config.workers or 'auto'}")
        click.echo(f"Output dir: {config.output_dir}")

    except DenoiseError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


# ============================================================================
# Helper Functions
# ============================================================================
def _show_warnings(config: Config) -> None:
    """Show configuration warnings."""
    warnings = config.validate()
    for warning in warnings:
        click.secho(f"Warning: {warning}", fg="yellow")


if __name__ == "__main__":
    cli()
