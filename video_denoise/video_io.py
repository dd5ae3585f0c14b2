"""Video input/output handling for Video Denoise.

Frames cross this boundary as grayscale ``uint8`` grids; color conversion
happens here and nowhere else.
"""

import json
import logging
from pathlib import Path
from typing import Generator, Optional

import cv2
import numpy as np
from tqdm import tqdm

from video_denoise.frames import FrameSequence
from video_denoise.utils import BackendUnavailableError, InvalidArgumentError, VideoNotFoundError, get_video_info

logger = logging.getLogger(__name__)

_initialized = False


def init() -> None:
    """Check once that OpenCV can decode and encode video.

    Call before reading or writing video; repeated calls are cheap.

    Raises:
        BackendUnavailableError: If no OpenCV video I/O backend is available
    """
    global _initialized
    if _initialized:
        return

    try:
        backends = cv2.videoio_registry.getBackends()
    except cv2.error as e:
        raise BackendUnavailableError(f"OpenCV video I/O unavailable: {e}") from e
    if not backends:
        raise BackendUnavailableError("OpenCV was built without any video I/O backend")

    names = [cv2.videoio_registry.getBackendName(b) for b in backends]
    logger.debug("OpenCV %s video backends: %s", cv2.__version__, ", ".join(names))
    _initialized = True


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a decoded BGR, BGRA or gray frame to a gray grid."""
    if frame.ndim == 2:
        return frame
    channels = frame.shape[2]
    if channels == 1:
        return frame[:, :, 0]
    if channels == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    if channels == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    raise InvalidArgumentError(f"Unsupported channel count: {channels}")


class VideoReader:
    """Read grayscale video frames from a file."""

    def __init__(self, video_path: Path, max_frames: Optional[int] = None):
        """Initialize video reader.

        Args:
            video_path: Path to input video
            max_frames: Maximum frames to read (None = all)
        """
        self.video_path = Path(video_path)
        self.max_frames = max_frames
        self._cap: Optional[cv2.VideoCapture] = None
        self._info: Optional[dict] = None

    @property
    def info(self) -> dict:
        """Get video information."""
        if self._info is None:
            self._info = get_video_info(self.video_path)
        return self._info

    def __enter__(self) -> "VideoReader":
        if not self.video_path.exists():
            raise VideoNotFoundError(f"Video not found: {self.video_path}")
        self._cap = cv2.VideoCapture(str(self.video_path))
        if not self._cap.isOpened():
            raise VideoNotFoundError(f"Cannot open video: {self.video_path}")
        return self

    def __exit__(self, *args) -> None:
        if self._cap:
            self._cap.release()

    def frames(self, show_progress: bool = True) -> Generator[tuple[int, np.ndarray], None, None]:
        """Iterate over grayscale video frames.

        Args:
            show_progress: Show progress bar

        Yields:
            Tuple of (frame_index, gray_frame)
        """
        if self._cap is None:
            raise RuntimeError("VideoReader not opened. Use 'with' statement.")

        total = self.max_frames or self.info["frame_count"]
        pbar = tqdm(total=total, desc="Reading frames", disable=not show_progress)

        frame_idx = 0
        while True:
            if self.max_frames and frame_idx >= self.max_frames:
                break

            ret, frame = self._cap.read()
            if not ret:
                break

            yield frame_idx, to_gray(frame)

            frame_idx += 1
            pbar.update(1)

        pbar.close()

    def read_all(self, show_progress: bool = True) -> FrameSequence:
        """Read all frames into memory.

        Args:
            show_progress: Show progress bar

        Returns:
            FrameSequence carrying the source frame rate
        """
        frames = [frame for _, frame in self.frames(show_progress)]
        if not frames:
            raise VideoNotFoundError(f"No frames decoded from {self.video_path}")
        return FrameSequence(frames, fps=self.info["fps"])


class VideoWriter:
    """Write grayscale frames to a video file."""

    def __init__(
        self,
        output_path: Path,
        width: int,
        height: int,
        fps: float,
        codec: str = "mp4v",
    ):
        """Initialize video writer.

        Args:
            output_path: Path for output video
            width: Frame width
            height: Frame height
            fps: Frames per second
            codec: Video codec (default: mp4v)
        """
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.codec = codec
        self._writer: Optional[cv2.VideoWriter] = None
        self.frame_count = 0

    def __enter__(self) -> "VideoWriter":
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        fourcc = cv2.VideoWriter_fourcc(*self.codec)
        self._writer = cv2.VideoWriter(
            str(self.output_path),
            fourcc,
            self.fps,
            (self.width, self.height),
        )
        if not self._writer.isOpened():
            raise BackendUnavailableError(f"Cannot open writer for {self.output_path} (codec {self.codec})")
        return self

    def __exit__(self, *args) -> None:
        if self._writer:
            self._writer.release()

    def write_frame(self, frame: np.ndarray) -> None:
        """Write a grayscale frame (replicated to B, G and R).

        Args:
            frame: Gray frame array
        """
        if self._writer is None:
            raise RuntimeError("VideoWriter not opened. Use 'with' statement.")

        self._writer.write(cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR))
        self.frame_count += 1


def read_sequence(video_path: Path, max_frames: Optional[int] = None, show_progress: bool = True) -> FrameSequence:
    """Decode a video file into a grayscale FrameSequence."""
    init()
    with VideoReader(video_path, max_frames) as reader:
        return reader.read_all(show_progress)


def write_sequence(
    frames: FrameSequence,
    output_path: Path,
    fps: Optional[float] = None,
    codec: str = "mp4v",
) -> int:
    """Encode a FrameSequence to a video file.

    Args:
        frames: Frames to write
        output_path: Output video path
        fps: Frame rate (None = the sequence's own, else 24)
        codec: FourCC codec name

    Returns:
        Number of frames written
    """
    init()
    rate = fps or frames.fps or 24.0
    with VideoWriter(output_path, frames.width, frames.height, rate, codec) as writer:
        for frame in frames:
            writer.write_frame(frame)
        return writer.frame_count


class ProcessingResult:
    """Container for processing results."""

    def __init__(self, video_path: Path, output_dir: Path, task: str):
        """Initialize processing result.

        Args:
            video_path: Original video path
            output_dir: Output directory
            task: Task name (denoise, flow)
        """
        self.video_path = video_path
        self.output_dir = output_dir
        self.task = task
        self.outputs: list[dict] = []

    def add_output(
        self,
        output_path: Path,
        pipeline: str,
        frame_count: int,
        **kwargs,
    ) -> None:
        """Add an output file to results.

        Args:
            output_path: Path to output file
            pipeline: Pipeline or tool that produced it
            frame_count: Number of frames
            **kwargs: Additional metadata
        """
        self.outputs.append({
            "output_path": str(output_path),
            "pipeline": pipeline,
            "frame_count": frame_count,
            **kwargs,
        })

    def save_metadata(self) -> Path:
        """Save processing metadata to JSON file.

        Returns:
            Path to metadata file
        """
        metadata = {
            "input_video": str(self.video_path),
            "task": self.task,
            "outputs": self.outputs,
            "total_outputs": len(self.outputs),
        }

        metadata_path = self.output_dir / f"{self.video_path.stem}_metadata.json"
        with open(metadata_path, "w") as f:
            json.dump(metadata, f, indent=2)

        return metadata_path
