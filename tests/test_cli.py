"""Tests for the command line interface."""

from click.testing import CliRunner

from video_denoise.cli import cli
from video_denoise.pipeline import DenoisePipeline


class TestCli:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_pipeline_list(self):
        result = CliRunner().invoke(cli, ["pipeline", "list"])
        assert result.exit_code == 0
        assert "temporal-neighborhood" in result.output
        assert "blob" in result.output

    def test_pipeline_list_category(self):
        result = CliRunner().invoke(cli, ["pipeline", "list", "-c", "spatial"])
        assert result.exit_code == 0
        assert "median" in result.output
        assert "temporal-direct" not in result.output

    def test_pipeline_create(self, tmp_path):
        path = tmp_path / "clean.yaml"
        result = CliRunner().invoke(
            cli,
            ["pipeline", "create", str(path), "-s", "temporal-direct:anomaly=13,median:radius=2", "-n", "clean"],
        )
        assert result.exit_code == 0
        pipeline = DenoisePipeline.load(path)
        assert pipeline.name == "clean"
        assert [s.stage_id for s in pipeline.steps] == ["temporal-direct", "median"]

    def test_pipeline_create_rejects_unknown_stage(self, tmp_path):
        path = tmp_path / "bad.yaml"
        result = CliRunner().invoke(cli, ["pipeline", "create", str(path), "-s", "gaussian"])
        assert result.exit_code == 1
        assert "Unknown stage" in result.output
        assert not path.exists()

    def test_denoise_missing_video(self):
        result = CliRunner().invoke(cli, ["denoise", "does-not-exist.mp4"])
        assert result.exit_code != 0
