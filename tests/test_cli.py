"""CLI tests for vault, asset, and session commands."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner, Result
from PIL import Image

from inspo.cli import cli


def _env(tmp_path: Path) -> dict[str, Any]:
    """Return an environment isolating config and library under ``tmp_path``."""
    env: dict[str, Any] = {key: None for key in os.environ if key.startswith("INSPO")}
    env["HOME"] = str(tmp_path / "home")
    env["INSPO__LIBRARY__DOCUMENTS_ROOT"] = str(tmp_path / "Documents")
    return env


def _invoke(tmp_path: Path, args: list[str], **kwargs: Any) -> Result:
    return CliRunner().invoke(cli, args, env=_env(tmp_path), **kwargs)


def _vaults_dir(tmp_path: Path) -> Path:
    return tmp_path / "Documents" / "VisualInspiration" / "Vaults"


def _image(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (120, 60), color="purple").save(path)
    return path


def _vaults(tmp_path: Path) -> list[dict[str, Any]]:
    result = _invoke(tmp_path, ["vaults", "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)["vaults"]


def test_cli_help_displays_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Collect visual inspiration" in result.output
    for command in ("vaults", "delete-vault", "undo", "session"):
        assert command in result.output


def test_first_run_lists_default_vault(tmp_path: Path) -> None:
    vaults = _vaults(tmp_path)

    assert [vault["name"] for vault in vaults] == ["All Images"]
    assert vaults[0]["current"] is True
    assert vaults[0]["imageCount"] == 0


def test_create_switch_add_and_list(tmp_path: Path) -> None:
    source = _image(tmp_path / "Desktop" / "sunset.jpg")

    assert _invoke(tmp_path, ["create", "Moodboard"]).exit_code == 0
    switched = _invoke(tmp_path, ["switch", "moodboard"])
    assert switched.exit_code == 0, switched.output
    added = _invoke(tmp_path, ["add", str(source)])
    assert added.exit_code == 0, added.output

    listing = _invoke(tmp_path, ["ls", "--json"])
    payload = json.loads(listing.output)
    assert [asset["filename"] for asset in payload["assets"]] == ["sunset.jpg"]

    moodboard = next(vault for vault in _vaults(tmp_path) if vault["name"] == "Moodboard")
    assert moodboard["current"] is True
    assert moodboard["imageCount"] == 1
    assert (_vaults_dir(tmp_path) / moodboard["id"] / "sunset.jpg").exists()


def test_add_reports_unsupported_files(tmp_path: Path) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("not media", encoding="utf-8")

    result = _invoke(tmp_path, ["add", str(notes)])

    assert result.exit_code == 1
    assert "1 files could not be added" in result.output


def test_unknown_vault_is_an_error(tmp_path: Path) -> None:
    result = _invoke(tmp_path, ["switch", "nowhere"])

    assert result.exit_code == 1
    assert "No vault matches 'nowhere'" in result.output


def test_rename_by_id_prefix(tmp_path: Path) -> None:
    vault_id = _vaults(tmp_path)[0]["id"]

    result = _invoke(tmp_path, ["rename", vault_id[:8], "References"])

    assert result.exit_code == 0, result.output
    assert [vault["name"] for vault in _vaults(tmp_path)] == ["References"]


def test_paste_reads_standard_input(tmp_path: Path) -> None:
    result = _invoke(tmp_path, ["paste", "--extension", "png"], input=b"\x89PNG pasted")

    assert result.exit_code == 0, result.output
    vault_id = _vaults(tmp_path)[0]["id"]
    saved = list((_vaults_dir(tmp_path) / vault_id).iterdir())
    assert len(saved) == 1
    assert saved[0].name.startswith("image_")


def test_empty_prompts_and_remembers_choice(tmp_path: Path) -> None:
    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "a.png"))])

    declined = _invoke(tmp_path, ["empty"], input="n\n")
    assert declined.exit_code == 0
    assert "Cancelled" in declined.output
    assert _vaults(tmp_path)[0]["imageCount"] == 1

    accepted = _invoke(tmp_path, ["empty"], input="y\ny\n")
    assert accepted.exit_code == 0, accepted.output
    assert _vaults(tmp_path)[0]["imageCount"] == 0

    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "b.png"))])
    silent = _invoke(tmp_path, ["empty"])
    assert silent.exit_code == 0
    assert "Don't ask again" not in silent.output
    assert _vaults(tmp_path)[0]["imageCount"] == 0


def test_delete_vault_with_yes(tmp_path: Path) -> None:
    _invoke(tmp_path, ["create", "Scratch"])

    result = _invoke(tmp_path, ["delete-vault", "Scratch", "--yes"])

    assert result.exit_code == 0, result.output
    assert [vault["name"] for vault in _vaults(tmp_path)] == ["All Images"]


def test_undo_in_a_new_process_has_nothing_to_restore(tmp_path: Path) -> None:
    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "a.png"))])
    removed = _invoke(tmp_path, ["rm", "a.png"])
    assert "within" not in removed.output

    result = _invoke(tmp_path, ["undo"])

    assert result.exit_code == 0
    assert "Nothing to undo" in result.output


def test_session_keeps_undo_journal_between_commands(tmp_path: Path) -> None:
    source = _image(tmp_path / "Desktop" / "sunset.jpg")
    script = "\n".join(
        [
            "create Moodboard --switch",
            f"add '{source}'",
            "rm sunset.jpg",
            "undo",
            "switch nowhere",
            "exit",
            "",
        ]
    )

    result = _invoke(tmp_path, ["session"], input=script)

    assert result.exit_code == 0, result.output
    assert "Run 'undo' within 10 minutes" in result.output
    assert "Restored sunset.jpg" in result.output
    assert "No vault matches 'nowhere'" in result.output
    moodboard = next(vault for vault in _vaults(tmp_path) if vault["name"] == "Moodboard")
    assert (_vaults_dir(tmp_path) / moodboard["id"] / "sunset.jpg").exists()
    assert moodboard["imageCount"] == 1


def test_download_copies_and_skips_existing(tmp_path: Path) -> None:
    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "a.png"))])
    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "b.png"))])
    destination = tmp_path / "out"
    destination.mkdir()
    (destination / "a.png").write_bytes(b"mine")

    result = _invoke(tmp_path, ["download", "--dest", str(destination)])

    assert result.exit_code == 0, result.output
    assert "copied=1" in result.output
    assert "skipped=1" in result.output
    assert (destination / "a.png").read_bytes() == b"mine"
    assert (destination / "b.png").exists()


def test_thumb_writes_preview(tmp_path: Path) -> None:
    _invoke(tmp_path, ["add", str(_image(tmp_path / "in" / "wide.png"))])
    output = tmp_path / "preview.png"

    result = _invoke(tmp_path, ["thumb", "wide.png", "--size", "40", "--output", str(output)])

    assert result.exit_code == 0, result.output
    with Image.open(output) as preview:
        assert preview.size == (40, 20)


def test_cleanup_reports_summary(tmp_path: Path) -> None:
    result = _invoke(tmp_path, ["cleanup"])

    assert result.exit_code == 0
    assert "Cleanup summary" in result.output
