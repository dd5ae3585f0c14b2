"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from video_denoise.config import Config
from video_denoise.utils import InvalidArgumentError


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.output_dir == Path("./output")
        assert config.workers is None
        assert config.median_radius == 1
        assert config.temporal_variant == "direct"
        assert config.blob_repair == "off"

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VIDDENOISE_OUTPUT_DIR", str(tmp_path))
        monkeypatch.setenv("VIDDENOISE_WORKERS", "4")
        monkeypatch.setenv("VIDDENOISE_MAX_FRAMES", "100")
        monkeypatch.setenv("VIDDENOISE_PADDING", "zero")
        monkeypatch.setenv("VIDDENOISE_VARIANT", "median")
        config = Config.from_env()
        assert config.output_dir == tmp_path
        assert config.workers == 4
        assert config.max_frames == 100
        assert config.padding == "zero"
        assert config.temporal_variant == "median"

    def test_from_env_bad_number(self, monkeypatch):
        monkeypatch.setenv("VIDDENOISE_WORKERS", "many")
        with pytest.raises(InvalidArgumentError):
            Config.from_env()

    @pytest.mark.parametrize("kwargs", [
        {"workers": 0},
        {"median_radius": -1},
        {"median_passes": 0},
        {"padding": "mirror"},
        {"temporal_variant": "fast"},
        {"blob_repair": "during"},
        {"before_offset": 0},
        {"max_frames": 0},
    ])
    def test_check_rejects(self, kwargs):
        with pytest.raises(InvalidArgumentError):
            Config(**kwargs).check()

    def test_validate_warnings(self):
        assert Config().validate() == []
        warnings = Config(padding="zero", median_radius=2, workers=100000).validate()
        assert len(warnings) == 2

    def test_temporal_params(self):
        params = Config(anomaly_threshold=13, chain_temporal=False).temporal_params()
        assert params["anomaly"] == 13
        assert params["chain"] is False
        assert "stability" not in params
        assert "blend" not in params

    def test_ensure_dirs(self, tmp_path):
        config = Config(output_dir=tmp_path / "nested" / "out")
        config.ensure_dirs()
        assert config.output_dir.is_dir()
