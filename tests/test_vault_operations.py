"""End-to-end tests of vault operations against a temporary library."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from inspo.config.models import InspoConfig, LibrarySettings
from inspo.library import InspirationLibrary
from inspo.state import DEFAULT_VAULT_NAME, Vault
from inspo.undo import UndoOutcome
from inspo.vaults import ConfirmationDecision, DestructiveAction


@dataclass
class _Prompt:
    """Scripted confirmation answers."""

    decision: ConfirmationDecision
    calls: list[DestructiveAction] = field(default_factory=list)

    def confirm(self, action: DestructiveAction, vault: Vault) -> ConfirmationDecision:
        self.calls.append(action)
        return self.decision


@dataclass
class _Picker:
    """Scripted destination answers."""

    directory: Optional[Path] = None
    file: Optional[Path] = None
    suggestions: list[Optional[Path]] = field(default_factory=list)

    def choose_directory(self, suggested: Optional[Path]) -> Optional[Path]:
        self.suggestions.append(suggested)
        return self.directory

    def choose_file(self, suggested: Path) -> Optional[Path]:
        self.suggestions.append(suggested)
        return self.file


def _library(tmp_path: Path, **collaborators: object) -> InspirationLibrary:
    config = InspoConfig(library=LibrarySettings(documents_root=str(tmp_path / "Documents")))
    library = InspirationLibrary(config, configure_logs=False, **collaborators)
    return library.open(background=False)


def _image(path: Path, color: str = "red") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (24, 18), color=color).save(path)
    return path


def _flaky_copy(monkeypatch: pytest.MonkeyPatch, fail_on: int) -> None:
    """Make the ``fail_on``-th call of ``shutil.copy2`` raise."""
    real_copy = shutil.copy2
    calls: list[Path] = []

    def _copy(source: Path, destination: Path) -> object:
        calls.append(Path(source))
        if len(calls) == fail_on:
            raise OSError("disk full")
        return real_copy(source, destination)

    monkeypatch.setattr(shutil, "copy2", _copy)


def test_open_activates_default_vault(tmp_path: Path) -> None:
    library = _library(tmp_path)

    assert library.operations.current.name == DEFAULT_VAULT_NAME
    assert library.operations.assets == []


def test_moodboard_drop_delete_and_undo(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations, registry = library.operations, library.registry
    moodboard = operations.create_vault("Moodboard")
    operations.switch_to(moodboard)
    source = _image(tmp_path / "Desktop" / "sunset.jpg")

    asset = operations.save_from_path(source)

    assert asset.file_path == library.layout.vault_path(moodboard.id) / "sunset.jpg"
    assert registry.get(moodboard.id).image_count == 1
    assert [item.filename for item in operations.assets] == ["sunset.jpg"]

    result = operations.delete_asset(asset)
    assert result.ok
    assert not asset.file_path.exists()
    assert registry.get(moodboard.id).image_count == 0
    assert operations.assets == []

    restored = operations.undo_asset_delete()
    assert restored.outcome is UndoOutcome.RESTORED
    assert asset.file_path.read_bytes() == source.read_bytes()
    assert registry.get(moodboard.id).image_count == 1
    assert [item.filename for item in operations.assets] == ["sunset.jpg"]


def test_same_filename_in_two_vaults_restores_both(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    first = operations.current
    second = operations.create_vault("B")
    one = operations.save_from_path(_image(tmp_path / "in" / "photo.png", "red"))
    operations.switch_to(second)
    two = operations.save_from_path(_image(tmp_path / "in2" / "photo.png", "green"))
    first_bytes = one.file_path.read_bytes()
    second_bytes = two.file_path.read_bytes()

    operations.delete_asset(one)
    operations.delete_asset(two)

    assert operations.undo_asset_delete().restored
    assert operations.undo_asset_delete().restored
    assert (library.layout.vault_path(first.id) / "photo.png").read_bytes() == first_bytes
    assert (library.layout.vault_path(second.id) / "photo.png").read_bytes() == second_bytes


def test_save_from_bytes_tracks_new_asset(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations

    asset = operations.save_from_bytes(b"\x89PNG pasted")

    assert operations.assets[0] == asset
    assert library.registry.get(operations.current.id).image_count == 1


def test_empty_vault_backs_up_everything(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    for name in ("a.png", "b.png", "c.png"):
        operations.save_from_path(_image(tmp_path / "in" / name))
    vault = operations.current

    result = operations.empty_vault(vault)

    assert result.ok and result.processed == 3
    assert operations.assets == []
    assert library.registry.get(vault.id).image_count == 0
    assert len(list(library.layout.backups_directory().iterdir())) == 3


def test_empty_vault_stops_at_first_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    library = _library(tmp_path)
    operations = library.operations
    for name in ("a.png", "b.png", "c.png"):
        operations.save_from_path(_image(tmp_path / "in" / name))
    vault = operations.current
    _flaky_copy(monkeypatch, fail_on=2)

    result = operations.empty_vault(vault)

    assert not result.ok
    assert result.processed == 1
    assert len(operations.assets) == 2
    assert library.registry.get(vault.id).image_count == 2
    assert len(library.undo.asset_records) == 1
    assert len(list(library.layout.backups_directory().iterdir())) == 1


def test_empty_vault_respects_confirmation(tmp_path: Path) -> None:
    prompt = _Prompt(ConfirmationDecision(accepted=False))
    library = _library(tmp_path, prompt=prompt)
    operations = library.operations
    operations.save_from_path(_image(tmp_path / "in" / "keep.png"))

    result = operations.empty_vault(operations.current)

    assert result.cancelled
    assert len(operations.assets) == 1
    assert prompt.calls == [DestructiveAction.EMPTY_VAULT]


def test_dont_ask_again_skips_future_prompts(tmp_path: Path) -> None:
    prompt = _Prompt(ConfirmationDecision(accepted=True, dont_ask_again=True))
    library = _library(tmp_path, prompt=prompt)
    operations = library.operations

    operations.empty_vault(operations.current)
    operations.empty_vault(operations.current)

    assert prompt.calls == [DestructiveAction.EMPTY_VAULT]
    confirmations = library.preferences.preferences.confirmations
    assert confirmations.skip_empty_vault is True
    assert confirmations.skip_delete_vault is False


def test_delete_vault_and_undo_everything(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations, registry = library.operations, library.registry
    default = operations.current
    moodboard = operations.create_vault("Moodboard")
    operations.switch_to(moodboard)
    asset = operations.save_from_path(_image(tmp_path / "in" / "sunset.jpg"))

    result = operations.delete_vault(moodboard)

    assert result.ok and result.processed == 1
    assert moodboard.id not in registry
    assert not library.layout.vault_path(moodboard.id).exists()
    assert operations.current.id == default.id

    assert operations.undo_vault_delete().restored
    assert registry.index_of(moodboard.id) == 1
    assert operations.undo_asset_delete().restored
    assert asset.file_path.exists()
    assert registry.get(moodboard.id).image_count == 1


def test_delete_last_vault_bootstraps_default(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    only = operations.current

    result = operations.delete_vault(only)

    assert result.ok
    assert len(library.registry) == 1
    assert library.registry.vaults[0].id != only.id
    assert operations.current.name == DEFAULT_VAULT_NAME


def test_delete_vault_rolls_back_when_a_backup_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    library = _library(tmp_path)
    operations = library.operations
    for name in ("a.png", "b.png"):
        operations.save_from_path(_image(tmp_path / "in" / name))
    vault = operations.current
    _flaky_copy(monkeypatch, fail_on=2)

    result = operations.delete_vault(vault)

    assert not result.ok
    assert vault.id in library.registry
    assert library.loader.count_assets(vault.id) == 2
    assert list(library.layout.backups_directory().iterdir()) == []
    assert library.undo.asset_records == ()
    assert library.undo.vault_records == ()


def test_download_all_skips_existing_and_remembers(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    for name in ("a.png", "b.png"):
        operations.save_from_path(_image(tmp_path / "in" / name))
    destination = tmp_path / "out"
    destination.mkdir()
    (destination / "a.png").write_bytes(b"mine")

    summary = operations.download_all(operations.current, destination, remember=True)

    assert summary.ok
    assert [path.name for path in summary.copied] == ["b.png"]
    assert [path.name for path in summary.skipped] == ["a.png"]
    assert (destination / "a.png").read_bytes() == b"mine"
    assert library.preferences.preferences.download_directory == str(destination)


def test_download_uses_picker_with_remembered_directory(tmp_path: Path) -> None:
    picker = _Picker(directory=tmp_path / "picked")
    library = _library(tmp_path, picker=picker)
    operations = library.operations
    asset = operations.save_from_path(_image(tmp_path / "in" / "a.png"))
    library.preferences.update(download_directory=str(tmp_path / "remembered"))

    summary = operations.download_all(operations.current)
    assert [path.name for path in summary.copied] == ["a.png"]
    assert picker.suggestions == [tmp_path / "remembered"]

    picker.file = tmp_path / "single" / "copy.png"
    single = operations.download_one(asset)
    assert single.copied == [tmp_path / "single" / "copy.png"]
    assert picker.suggestions[-1] == tmp_path / "remembered" / "a.png"


def test_download_without_destination_or_picker_is_cancelled(tmp_path: Path) -> None:
    library = _library(tmp_path)

    summary = library.operations.download_all(library.operations.current)

    assert summary.cancelled
    assert not summary.ok


def test_delete_and_empty_handle_long_filenames(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    long_name = "a" * 240 + ".png"
    asset = operations.save_from_path(_image(tmp_path / "in" / long_name))
    operations.save_from_path(_image(tmp_path / "in" / ("b" * 240 + ".png")))

    deleted = operations.delete_asset(asset)
    assert deleted.ok
    assert operations.undo_asset_delete().restored
    assert asset.file_path.exists()

    emptied = operations.empty_vault(operations.current)
    assert emptied.ok and emptied.processed == 2
    assert operations.assets == []


def test_switch_to_unusable_vault_bootstraps_default(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    broken = operations.create_vault("Broken")
    directory = library.layout.vault_path(broken.id)
    directory.rmdir()
    directory.write_bytes(b"a file where the vault directory belongs")

    active = operations.switch_to(broken)

    assert active.id != broken.id
    assert active.name == DEFAULT_VAULT_NAME
    assert operations.current.id == active.id
    assert library.layout.vault_path(active.id).is_dir()
    assert library.preferences.preferences.current_vault_id == active.id


def test_stale_vault_is_rejected_before_any_backup(tmp_path: Path) -> None:
    library = _library(tmp_path)
    operations = library.operations
    scratch = operations.create_vault("Scratch")
    assert operations.delete_vault(scratch).ok

    deleted_again = operations.delete_vault(scratch)
    emptied = operations.empty_vault(scratch)

    assert not deleted_again.ok and scratch.id in (deleted_again.error or "")
    assert not emptied.ok
    assert library.undo.asset_records == ()
    assert len(library.undo.vault_records) == 1
    assert not library.layout.vault_path(scratch.id).exists()
