"""Utility functions for Video Denoise."""

import logging
import re
from pathlib import Path
from typing import Optional


class DenoiseError(Exception):
    """Base exception for Video Denoise."""
    pass


class InvalidArgumentError(DenoiseError):
    """Raised when a parameter, grid or flow field is invalid.

    Always raised before any frame is processed.
    """
    pass


class WorkerFailureError(DenoiseError):
    """Raised when a band worker fails; the stage output is discarded."""
    pass


class VideoNotFoundError(DenoiseError):
    """Raised when input video file is not found."""
    pass


class BackendUnavailableError(DenoiseError):
    """Raised when OpenCV or its video I/O backend cannot be used."""
    pass


LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s] %(name)s - %(message)s"

# Handlers installed by setup_logging, replaced on the next call
_installed_handlers: list[logging.Handler] = []


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure root logging for command line runs.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional file that receives a copy of every record
    """
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        raise InvalidArgumentError(f"Unknown log level: {level}")

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.setLevel(numeric)
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
        _installed_handlers.append(handler)


def check_integer(value, name: str, minimum: int = 0) -> int:
    """Return value as int, rejecting fractional, non-numeric or too-small values.

    Step strings parse "1.5" to a float, so integral floats such as 2.0 are
    accepted and anything else is refused before it reaches range() or
    indexing.
    """
    try:
        integral = int(value) == value
    except (TypeError, ValueError, OverflowError):
        integral = False
    if not integral or value < minimum:
        raise InvalidArgumentError(f"{name} must be an integer >= {minimum}, got {value!r}")
    return int(value)


def sanitize_filename(name: str) -> str:
    """Sanitize a string for use as a filename.

    Args:
        name: Input string

    Returns:
        Sanitized string safe for filenames
    """
    sanitized = re.sub(r"[^\w\-]", "_", name)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = sanitized.strip("_")
    return sanitized.lower()


def get_output_filename(
    input_path: Path,
    task: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Generate output filename for a processed video.

    Args:
        input_path: Original video file path
        task: Task name (e.g., "denoise")
        suffix: Additional suffix (e.g., "median", "motion")
        output_dir: Output directory

    Returns:
        Path for the output video file
    """
    stem = input_path.stem
    safe_suffix = sanitize_filename(suffix)
    return output_dir / f"{stem}_{task}_{safe_suffix}.mp4"


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1h 23m 45s")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")

    return " ".join(parts)


def get_video_info(video_path: Path) -> dict:
    """Get basic video information using OpenCV.

    Args:
        video_path: Path to video file

    Returns:
        Dictionary with video info (width, height, fps, frame_count, duration)
    """
    import cv2

    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        raise VideoNotFoundError(f"Cannot open video: {video_path}")

    try:
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = cap.get(cv2.CAP_PROP_FPS)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        duration = frame_count / fps if fps > 0 else 0

        return {
            "width": width,
            "height": height,
            "fps": fps,
            "frame_count": frame_count,
            "duration": duration,
            "duration_str": format_duration(duration),
        }
    finally:
        cap.release()
