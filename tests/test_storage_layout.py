"""Tests for the on-disk library layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from inspo.errors import StorageIOError
from inspo.storage import StorageLayout


def test_directories_are_created_lazily(tmp_path: Path) -> None:
    layout = StorageLayout(tmp_path)
    root = tmp_path / "VisualInspiration"

    assert not root.exists()
    assert layout.vaults_directory() == root / "Vaults"
    assert layout.backups_directory() == root / "Backups"
    assert (root / "Vaults").is_dir()
    assert (root / "Backups").is_dir()


def test_vault_directory_creates_but_vault_path_does_not(tmp_path: Path) -> None:
    layout = StorageLayout(tmp_path, "Library")

    planned = layout.vault_path("abc")
    assert planned == tmp_path / "Library" / "Vaults" / "abc"
    assert not planned.exists()

    assert layout.vault_directory("abc") == planned
    assert planned.is_dir()


def test_document_paths_live_in_root(tmp_path: Path) -> None:
    layout = StorageLayout(tmp_path)

    assert layout.metadata_path().name == "vaults.json"
    assert layout.preferences_path().name == "preferences.json"
    assert layout.metadata_path().parent == layout.root_directory()
    assert layout.log_path() == tmp_path / "VisualInspiration" / "inspo.log"


def test_unwritable_root_raises_storage_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    layout = StorageLayout(blocker)

    with pytest.raises(StorageIOError):
        layout.vaults_directory()
