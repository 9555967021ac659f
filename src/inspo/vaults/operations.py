"""Vault lifecycle operations composed from the registry, loader, and undo journal."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from inspo.errors import NotFoundError, StorageIOError
from inspo.ingestion import Asset, AssetImporter, AssetLoader, sort_by_recency
from inspo.state import PreferenceStore, Vault, VaultRegistry
from inspo.storage import StorageLayout
from inspo.thumbnails import ThumbnailCache
from inspo.undo import BackupRecord, UndoManager, UndoResult

from .collaborators import ConfirmationPrompt, DestinationPicker
from .models import DestructiveAction, DownloadSummary, OperationResult

LOGGER = logging.getLogger(__name__)


class VaultOperations:
    """Externally visible vault operations.

    Every destructive path copies a file aside through the undo journal
    before the original is removed. Operations run sequentially on the
    caller's thread; filesystem failures on destructive paths are reported
    as failed :class:`OperationResult` values.
    """

    def __init__(
        self,
        *,
        registry: VaultRegistry,
        loader: AssetLoader,
        importer: AssetImporter,
        undo: UndoManager,
        preferences: PreferenceStore,
        layout: StorageLayout,
        thumbnails: Optional[ThumbnailCache] = None,
        prompt: Optional[ConfirmationPrompt] = None,
        picker: Optional[DestinationPicker] = None,
    ) -> None:
        self._registry = registry
        self._loader = loader
        self._importer = importer
        self._undo = undo
        self._preferences = preferences
        self._layout = layout
        self._thumbnails = thumbnails
        self.prompt = prompt
        self.picker = picker
        self.assets: list[Asset] = []
        self._current: Optional[Vault] = None

    # ------------------------------------------------------------------ #
    # Navigation                                                         #
    # ------------------------------------------------------------------ #

    @property
    def current(self) -> Vault:
        """Return the active vault, opening the remembered one on first use."""
        if self._current is None or self._current.id not in self._registry:
            return self.open()
        return self._current

    def open(self) -> Vault:
        """Activate the remembered vault (or its fallback) and load its assets."""
        return self.switch_to(self._registry.current())

    def switch_to(self, vault: Vault) -> Vault:
        """Make ``vault`` current, remember it, and reload its assets.

        When the vault directory cannot be created a default vault is
        bootstrapped and activated instead.

        Raises:
            NotFoundError: If ``vault`` is not registered.
            StorageIOError: If even the default vault has no usable directory.
        """
        target = self._registry.get(vault.id)
        try:
            self._layout.vault_directory(target.id)
        except StorageIOError:
            LOGGER.warning("Vault %s is unusable; switching to a new default vault.", target.id)
            target = self._registry.bootstrap_default()
            self._layout.vault_directory(target.id)

        self._registry.set_current(target.id)
        self._current = target
        self.reload()
        return target

    def reload(self) -> list[Asset]:
        """Re-list the current vault newest first and correct its cached count."""
        vault = self.current
        self.assets = sort_by_recency(self._loader.list_assets(vault.id))
        self._registry.update_count(vault.id, len(self.assets))
        return self.assets

    def refresh_vault(self, vault_id: str) -> int:
        """Recount ``vault_id`` after outside changes, reloading it when current."""
        if vault_id not in self._registry:
            return 0
        if self._current is not None and self._current.id == vault_id:
            return len(self.reload())
        count = self._loader.count_assets(vault_id)
        self._registry.update_count(vault_id, count)
        return count

    # ------------------------------------------------------------------ #
    # Vault metadata                                                     #
    # ------------------------------------------------------------------ #

    def create_vault(self, name: str = "") -> Vault:
        return self._registry.create(name)

    def rename_vault(self, vault: Vault, name: str) -> Vault:
        return self._registry.rename(vault.id, name)

    # ------------------------------------------------------------------ #
    # Assets                                                             #
    # ------------------------------------------------------------------ #

    def save_from_path(self, path: Path | str) -> Asset:
        """Copy a dropped file into the current vault."""
        vault = self.current
        asset = self._importer.save_from_path(Path(path), vault.id)
        self._track_new(asset)
        return asset

    def save_from_bytes(self, data: bytes, extension: str = "png") -> Asset:
        """Write pasted media bytes into the current vault."""
        vault = self.current
        asset = self._importer.save_from_bytes(data, vault.id, extension)
        self._track_new(asset)
        return asset

    def delete_asset(self, asset: Asset) -> OperationResult:
        """Back up and delete one asset."""
        try:
            self._delete_with_backup(asset)
        except StorageIOError as exc:
            return OperationResult.failure("delete_asset", str(exc))

        if asset.vault_id in self._registry:
            self._registry.adjust_count(asset.vault_id, -1)
        self.assets = [item for item in self.assets if item.file_path != asset.file_path]
        return OperationResult("delete_asset", processed=1)

    # ------------------------------------------------------------------ #
    # Batch operations                                                   #
    # ------------------------------------------------------------------ #

    def empty_vault(self, vault: Vault) -> OperationResult:
        """Back up and delete every asset of ``vault``.

        The batch stops at the first file that cannot be backed up or
        removed; files processed before that stay deleted with their backups
        journaled.
        """
        action = DestructiveAction.EMPTY_VAULT.value
        try:
            vault = self._registry.get(vault.id)
        except NotFoundError as exc:
            return OperationResult.failure(action, str(exc))
        if not self._confirm(DestructiveAction.EMPTY_VAULT, vault):
            return OperationResult.cancel(action)

        assets = self._loader.list_assets(vault.id)
        processed = 0
        error: Optional[str] = None
        for asset in assets:
            try:
                self._delete_with_backup(asset)
            except StorageIOError as exc:
                error = str(exc)
                break
            processed += 1

        self._registry.update_count(vault.id, len(assets) - processed)
        if self._current is not None and self._current.id == vault.id:
            self.reload()

        if error is not None:
            LOGGER.warning(
                "Emptying vault %s stopped after %d files: %s", vault.id, processed, error
            )
            return OperationResult.failure(action, error, processed=processed)
        LOGGER.info("Emptied vault %s (%d files)", vault.id, processed)
        return OperationResult(action, processed=processed)

    def delete_vault(self, vault: Vault) -> OperationResult:
        """Back up every asset, then remove the vault directory and record.

        Nothing is deleted unless every file was copied aside. The registry
        never ends up empty: deleting the last vault bootstraps a default one.
        """
        action = DestructiveAction.DELETE_VAULT.value
        try:
            vault = self._registry.get(vault.id)
        except NotFoundError as exc:
            return OperationResult.failure(action, str(exc))
        position = self._registry.index_of(vault.id)
        if not self._confirm(DestructiveAction.DELETE_VAULT, vault):
            return OperationResult.cancel(action)

        assets = self._loader.list_assets(vault.id)
        backups: list[Path] = []
        for asset in assets:
            try:
                backups.append(self._undo.backup_before_delete(asset))
            except StorageIOError as exc:
                for backup_path in backups:
                    record = self._undo.record_for(backup_path)
                    if record is not None:
                        self._undo.discard(record)
                return OperationResult.failure(action, str(exc))

        was_current = self._current is not None and self._current.id == vault.id
        directory = self._layout.vault_path(vault.id)
        try:
            if directory.exists():
                shutil.rmtree(directory)
        except OSError as exc:
            LOGGER.error("Unable to remove %s: %s", directory, exc)
            if was_current:
                self.reload()
            return OperationResult.failure(
                action, f"Unable to remove vault directory: {exc}", processed=len(assets)
            )

        self._undo.record_vault_delete(vault, position)
        self._registry.remove(vault.id)
        if self._thumbnails is not None:
            for asset in assets:
                self._thumbnails.invalidate(asset.file_path)

        if was_current or len(self._registry) == 0:
            if len(self._registry) == 0:
                fallback = self._registry.bootstrap_default()
            else:
                fallback = self._registry.vaults[0]
            self.switch_to(fallback)

        LOGGER.info("Deleted vault %s (%d files backed up)", vault.id, len(assets))
        return OperationResult(action, processed=len(assets))

    # ------------------------------------------------------------------ #
    # Undo                                                               #
    # ------------------------------------------------------------------ #

    def undo_asset_delete(self) -> UndoResult:
        """Restore the most recent asset deletion, refreshing the active listing."""
        result = self._undo.undo_last_asset_delete()
        record = result.record
        if (
            result.restored
            and isinstance(record, BackupRecord)
            and self._current is not None
            and record.asset.vault_id == self._current.id
        ):
            self.reload()
        return result

    def undo_vault_delete(self) -> UndoResult:
        """Restore the most recent vault deletion's metadata."""
        return self._undo.undo_last_vault_delete()

    # ------------------------------------------------------------------ #
    # Downloads                                                          #
    # ------------------------------------------------------------------ #

    def download_all(
        self,
        vault: Vault,
        destination: Optional[Path | str] = None,
        *,
        remember: bool = False,
    ) -> DownloadSummary:
        """Copy every asset of ``vault`` into ``destination``, skipping existing files.

        Without a destination the picker collaborator is asked, seeded with
        the remembered download directory.
        """
        if destination is None:
            destination = self._pick_directory()
            if destination is None:
                return DownloadSummary(cancelled=True)

        target_dir = Path(destination).expanduser()
        summary = DownloadSummary(destination=target_dir)
        assets = self._loader.list_assets(vault.id)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Unable to create download directory %s: %s", target_dir, exc)
            summary.failed.extend(asset.file_path for asset in assets)
            return summary

        for asset in assets:
            self._copy_out(asset.file_path, target_dir / asset.filename, summary)

        if remember:
            self._preferences.update(download_directory=str(target_dir))
        return summary

    def download_one(
        self,
        asset: Asset,
        destination_file: Optional[Path | str] = None,
    ) -> DownloadSummary:
        """Copy one asset to ``destination_file`` unless a file already exists there."""
        if destination_file is None:
            remembered = self._preferences.preferences.download_directory
            suggested = Path(remembered).expanduser() if remembered else Path.home()
            if self.picker is None:
                return DownloadSummary(cancelled=True)
            destination_file = self.picker.choose_file(suggested / asset.filename)
            if destination_file is None:
                return DownloadSummary(cancelled=True)

        target = Path(destination_file).expanduser()
        summary = DownloadSummary(destination=target.parent)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Unable to create download directory %s: %s", target.parent, exc)
            summary.failed.append(asset.file_path)
            return summary
        self._copy_out(asset.file_path, target, summary)
        return summary

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _track_new(self, asset: Asset) -> None:
        self.assets.insert(0, asset)
        self._registry.adjust_count(asset.vault_id, 1)

    def _delete_with_backup(self, asset: Asset) -> None:
        backup_path = self._undo.backup_before_delete(asset)
        try:
            asset.file_path.unlink()
        except OSError as exc:
            record = self._undo.record_for(backup_path)
            if record is not None:
                self._undo.discard(record)
            LOGGER.error("Unable to delete %s: %s", asset.file_path, exc)
            raise StorageIOError(f"Unable to delete {asset.filename}: {exc}") from exc
        if self._thumbnails is not None:
            self._thumbnails.invalidate(asset.file_path)

    def _confirm(self, action: DestructiveAction, vault: Vault) -> bool:
        flags = self._preferences.preferences.confirmations
        if action is DestructiveAction.EMPTY_VAULT:
            skip = flags.skip_empty_vault
        else:
            skip = flags.skip_delete_vault
        if skip or self.prompt is None:
            return True

        decision = self.prompt.confirm(action, vault)
        if decision.accepted and decision.dont_ask_again:
            if action is DestructiveAction.EMPTY_VAULT:
                updated = flags.model_copy(update={"skip_empty_vault": True})
            else:
                updated = flags.model_copy(update={"skip_delete_vault": True})
            self._preferences.update(confirmations=updated)
        return decision.accepted

    def _pick_directory(self) -> Optional[Path]:
        if self.picker is None:
            return None
        remembered = self._preferences.preferences.download_directory
        suggested = Path(remembered).expanduser() if remembered else None
        return self.picker.choose_directory(suggested)

    def _copy_out(self, source: Path, target: Path, summary: DownloadSummary) -> None:
        if target.exists():
            summary.skipped.append(target)
            return
        try:
            shutil.copy2(source, target)
        except OSError as exc:
            LOGGER.warning("Unable to copy %s to %s: %s", source, target, exc)
            summary.failed.append(source)
            return
        summary.copied.append(target)


__all__ = ["VaultOperations"]
