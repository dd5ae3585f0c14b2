"""Tests for utility helpers and video I/O."""

import logging
from pathlib import Path

import numpy as np
import pytest

from video_denoise.frames import FrameSequence
from video_denoise.utils import (
    BackendUnavailableError,
    InvalidArgumentError,
    VideoNotFoundError,
    check_integer,
    format_duration,
    get_output_filename,
    sanitize_filename,
    setup_logging,
)


class TestSanitizeFilename:
    def test_simple(self):
        assert sanitize_filename("median") == "median"

    def test_spaces(self):
        assert sanitize_filename("heavy clean up") == "heavy_clean_up"

    def test_special_chars(self):
        assert sanitize_filename("temporal:anomaly=13") == "temporal_anomaly_13"


class TestGetOutputFilename:
    def test_basic(self):
        result = get_output_filename(Path("/input/video.mp4"), "denoise", "adaptive", Path("/output"))
        assert result == Path("/output/video_denoise_adaptive.mp4")


class TestFormatDuration:
    def test_seconds(self):
        assert format_duration(45) == "45s"

    def test_minutes(self):
        assert format_duration(125) == "2m 5s"

    def test_hours(self):
        assert format_duration(3725) == "1h 2m 5s"


class TestSetupLogging:
    def test_sets_level(self):
        setup_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        setup_logging("WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level(self):
        with pytest.raises(InvalidArgumentError):
            setup_logging("CHATTY")


class TestCheckInteger:
    @pytest.mark.parametrize("value, expected", [(3, 3), (2.0, 2), (np.int64(4), 4)])
    def test_accepts_integral_values(self, value, expected):
        result = check_integer(value, "window", minimum=1)
        assert result == expected
        assert type(result) is int

    @pytest.mark.parametrize("value", [1.5, "2", None, float("nan"), float("inf"), 0])
    def test_rejects(self, value):
        with pytest.raises(InvalidArgumentError):
            check_integer(value, "window", minimum=1)


class TestVideoIO:
    def test_missing_video(self, tmp_path):
        from video_denoise.video_io import read_sequence

        with pytest.raises(VideoNotFoundError):
            read_sequence(tmp_path / "missing.mp4", show_progress=False)

    def test_round_trip(self, tmp_path):
        from video_denoise.video_io import read_sequence, write_sequence

        frames = FrameSequence(
            [np.full((32, 48), 40 * i, dtype=np.uint8) for i in range(4)],
            fps=10.0,
        )
        path = tmp_path / "gray.avi"
        try:
            written = write_sequence(frames, path, codec="MJPG")
        except BackendUnavailableError:
            pytest.skip("No MJPG encoder available")

        assert written == 4
        decoded = read_sequence(path, show_progress=False)
        assert len(decoded) == 4
        assert decoded.shape == (32, 48)
        assert abs(int(decoded[2].mean()) - 80) <= 3

    def test_processing_result_metadata(self, tmp_path):
        import json

        from video_denoise.video_io import ProcessingResult

        result = ProcessingResult(Path("clip.mp4"), tmp_path, "denoise")
        result.add_output(tmp_path / "clip_denoise_direct.mp4", pipeline="temporal-direct,median", frame_count=12)
        metadata = json.loads(result.save_metadata().read_text())
        assert metadata["task"] == "denoise"
        assert metadata["total_outputs"] == 1
        assert metadata["outputs"][0]["frame_count"] == 12

    def test_to_gray_rejects_two_channels(self):
        from video_denoise.video_io import to_gray

        with pytest.raises(InvalidArgumentError):
            to_gray(np.zeros((4, 4, 2), dtype=np.uint8))

    def test_process_video_writes_outputs(self, tmp_path):
        import json

        from video_denoise.config import Config
        from video_denoise.pipeline import DenoisePipeline
        from video_denoise.video_io import read_sequence, write_sequence

        clip = tmp_path / "clip.avi"
        frames = FrameSequence([np.full((32, 48), 120, dtype=np.uint8) for _ in range(4)], fps=12.0)
        output_dir = tmp_path / "out"
        pipeline = DenoisePipeline("clean", config=Config(output_dir=output_dir, workers=2))
        pipeline.add("temporal-direct").add("median")

        try:
            write_sequence(frames, clip, codec="MJPG")
            result = pipeline.process_video(clip, show_progress=False)
        except BackendUnavailableError:
            pytest.skip("No video encoder available")

        assert result.output_video == output_dir / "clip_denoise_clean.mp4"
        assert result.output_video.exists()
        assert result.completed_count == 2

        decoded = read_sequence(result.output_video, show_progress=False)
        assert len(decoded) == 4
        assert decoded.fps == pytest.approx(12.0, abs=0.5)

        metadata = json.loads((output_dir / "clip_metadata.json").read_text())
        assert metadata["task"] == "denoise"
        assert metadata["outputs"][0]["pipeline"] == "temporal-direct,median"
        assert metadata["outputs"][0]["frame_count"] == 4

        summaries = list(output_dir.glob("pipeline_clean_*.json"))
        assert len(summaries) == 1
        summary = json.loads(summaries[0].read_text())
        assert summary["frames"] == 4
        assert [s["stage"] for s in summary["steps"]] == ["temporal-direct", "median"]
