"""Tests for the imgwatch command line."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image
from typer.testing import CliRunner

from imgwatch.cli.app import app
from imgwatch.models.config import RunMode, WatchConfig
from imgwatch.pipeline.poller import RunSummary

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, rgb_image: str, write_config, monkeypatch) -> Path:
    """A working directory with one image and a config resizing it."""
    write_config({"resize_filter": "Nearest", "files": [{"path": "photo.png", "width": 20}]})
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestCLI:
    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "compile" in result.output.lower()
        assert "watch" in result.output.lower()

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "imgwatch" in result.output

    def test_compile(self, project: Path) -> None:
        result = runner.invoke(app, ["-c"])
        assert result.exit_code == 0, result.output
        assert "Parsing config file image_watcher.yaml" in result.output
        with Image.open(project / "photo.min.png") as img:
            assert img.size == (20, 10)

    @pytest.mark.parametrize(
        "flag", ["-C", "--compile", "-compile", "--Compile", "--c", "--C", "--COMPILE", "--cOmpile"]
    )
    def test_compile_synonyms(self, project: Path, flag: str) -> None:
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0, result.output
        assert (project / "photo.min.png").exists()

    @pytest.mark.parametrize("flag", ["-W", "--watch", "--WATCH", "-Watch", "--W"])
    def test_watch_flags_any_case(self, project: Path, flag: str) -> None:
        with patch("imgwatch.pipeline.poller.run_watch", return_value=RunSummary()) as run:
            result = runner.invoke(app, [flag])
        assert result.exit_code == 0, result.output
        assert run.call_args.args[1] is RunMode.WATCH

    @pytest.mark.parametrize("flag", ["-V", "-v"])
    def test_version_short_flag(self, flag: str) -> None:
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert "imgwatch" in result.output

    def test_explicit_config_path(self, tmp_path: Path, rgb_image: str, write_config) -> None:
        out = tmp_path / "out" / "small.png"
        out.parent.mkdir()
        config = write_config(
            {"files": [{"path": rgb_image, "output": str(out), "height": 5}]}, name="other.yaml"
        )
        result = runner.invoke(app, ["--compile", "--config", str(config)])
        assert result.exit_code == 0, result.output
        with Image.open(out) as img:
            assert img.size == (10, 5)

    def test_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["-c", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_config(self, tmp_path: Path, write_config) -> None:
        config = write_config(
            {"files": [{"path": "a.png", "resize_filter": "Bicubic", "width": 1}]}
        )
        result = runner.invoke(app, ["-c", "--config", str(config)])
        assert result.exit_code == 1
        assert "Bicubic" in result.output

    def test_both_modes_rejected(self, project: Path) -> None:
        result = runner.invoke(app, ["-c", "-w"])
        assert result.exit_code == 2
        assert not (project / "photo.min.png").exists()

    def test_prompt_when_no_flag(self, project: Path) -> None:
        with patch("imgwatch.cli.app.prompt_mode", return_value=RunMode.COMPILE) as prompt:
            result = runner.invoke(app, [])
        assert result.exit_code == 0, result.output
        prompt.assert_called_once()
        assert (project / "photo.min.png").exists()

    def test_prompt_cancelled(self, project: Path) -> None:
        with patch("imgwatch.cli.app.prompt_mode", return_value=None):
            result = runner.invoke(app, [])
        assert result.exit_code == 130
        assert not (project / "photo.min.png").exists()

    def test_watch_options_forwarded(self, project: Path) -> None:
        with patch("imgwatch.pipeline.poller.run_watch", return_value=RunSummary()) as run:
            result = runner.invoke(
                app, ["--watch", "--interval", "0.5", "--workers", "3", "--strict"]
            )
        assert result.exit_code == 0, result.output
        tasks, mode, config = run.call_args.args
        assert mode is RunMode.WATCH
        assert config == WatchConfig(interval=0.5, workers=3, strict=True)
        assert [t.output for t in tasks] == ["photo.min.png"]

    def test_file_error_exit_code(self, project: Path, write_config) -> None:
        write_config({"files": [{"path": "missing.png"}, {"path": "photo.png"}]})
        result = runner.invoke(app, ["-c"])
        assert result.exit_code == 1
        assert "Skipping" in result.output
        assert (project / "photo.min.png").exists()

    def test_strict_aborts(self, project: Path, write_config) -> None:
        write_config({"files": [{"path": "missing.png"}, {"path": "photo.png"}]})
        result = runner.invoke(app, ["-c", "--strict"])
        assert result.exit_code == 1
        assert "Error" in result.output
        assert not (project / "photo.min.png").exists()

    def test_interrupt(self, project: Path) -> None:
        with patch("imgwatch.pipeline.poller.run_watch", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["-w"])
        assert result.exit_code == 130
