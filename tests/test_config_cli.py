"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from inspo.cli import cli
from inspo.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env: dict[str, Any] = {key: None for key in os.environ if key.startswith("INSPO")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".inspo" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "undo:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "undo.window_seconds", "--value", "300"], env=env
    )

    assert result.exit_code == 0
    assert "300" in result.output
    assert "Updated undo.window_seconds" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    assert manager.load().undo.window_seconds == 300


def test_config_set_reports_unchanged_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "undo.window_seconds", "--value", "600"], env=env
    )

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "thumbnails.workers", "--value", "zero"], env=env
    )

    assert result.exit_code == 1
    assert "Invalid configuration values" in result.output


def test_config_option_selects_alternate_file(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    alternate = tmp_path / "alt.yaml"

    result = runner.invoke(
        cli,
        ["--config", str(alternate), "config", "set", "watch.enabled", "--value", "true"],
        env=env,
    )

    assert result.exit_code == 0
    assert ConfigManager(config_path=alternate, env={}).load().watch.enabled is True
    assert not _config_path(tmp_path).exists()


def test_config_view_env_lists_assignments(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["INSPO__UNDO__WINDOW_SECONDS"] = "120"

    result = runner.invoke(cli, ["config", "view", "--env"], env=env)

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert "INSPO__UNDO__WINDOW_SECONDS=120" in lines
    assert "INSPO__LIBRARY__LIBRARY_DIRNAME=VisualInspiration" in lines
    assert "INSPO__THUMBNAILS__FFMPEG_PATH=null" in lines
