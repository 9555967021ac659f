"""Time-boxed undo journal backed by copies in the backups directory."""

from __future__ import annotations

import logging
import secrets
import shutil
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from inspo.errors import StorageIOError
from inspo.ingestion.importer import available_path
from inspo.ingestion.models import Asset
from inspo.state import Vault, VaultRegistry
from inspo.storage import StorageLayout

from .models import BackupRecord, CleanupReport, DeletedVaultRecord, UndoOutcome, UndoResult

LOGGER = logging.getLogger(__name__)

DEFAULT_UNDO_WINDOW = timedelta(minutes=10)
MAX_FILENAME_BYTES = 255


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UndoManager:
    """Make destructive operations reversible within a fixed window.

    Asset and vault deletions are journaled on two last-in-first-out stacks
    that live only in memory. Each entry is either restored by an explicit
    undo before the window closes or expires and is reaped by
    :meth:`cleanup_expired`, which also deletes backup files no live entry
    references. The journal is guarded by a re-entrant lock because the
    cleanup sweep runs on a background thread.
    """

    def __init__(
        self,
        layout: StorageLayout,
        registry: VaultRegistry,
        *,
        window: timedelta = DEFAULT_UNDO_WINDOW,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._layout = layout
        self._registry = registry
        self._window = window
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._asset_records: list[BackupRecord] = []
        self._vault_records: list[DeletedVaultRecord] = []

    # ------------------------------------------------------------------ #
    # Journal views                                                      #
    # ------------------------------------------------------------------ #

    @property
    def window(self) -> timedelta:
        return self._window

    @property
    def asset_records(self) -> tuple[BackupRecord, ...]:
        with self._lock:
            return tuple(self._asset_records)

    @property
    def vault_records(self) -> tuple[DeletedVaultRecord, ...]:
        with self._lock:
            return tuple(self._vault_records)

    @property
    def can_undo_asset(self) -> bool:
        """Return whether the newest asset deletion is still within the window."""
        with self._lock:
            return bool(self._asset_records) and not self.is_expired(
                self._asset_records[-1].deleted_at
            )

    @property
    def can_undo_vault(self) -> bool:
        """Return whether the newest vault deletion is still within the window."""
        with self._lock:
            return bool(self._vault_records) and not self.is_expired(
                self._vault_records[-1].deleted_at
            )

    def is_expired(self, deleted_at: datetime) -> bool:
        return self._clock() - deleted_at > self._window

    # ------------------------------------------------------------------ #
    # Journaling                                                         #
    # ------------------------------------------------------------------ #

    def backup_before_delete(self, asset: Asset) -> Path:
        """Copy ``asset`` aside and journal it; the original is left in place.

        Returns:
            Path: Location of the backup copy.

        Raises:
            StorageIOError: If the copy fails; nothing is journaled.
        """
        with self._lock:
            backup_path: Optional[Path] = None
            try:
                backup_path = self._unique_backup_path(self._layout.backups_directory(), asset)
                shutil.copy2(asset.file_path, backup_path)
            except (OSError, StorageIOError) as exc:
                LOGGER.error("Backup of %s failed: %s", asset.file_path, exc)
                if backup_path is not None:
                    _remove_partial(backup_path)
                raise StorageIOError(f"Unable to back up {asset.filename}: {exc}") from exc

            self._asset_records.append(
                BackupRecord(asset=asset, backup_path=backup_path, deleted_at=self._clock())
            )
            LOGGER.debug("Backed up %s to %s", asset.file_path, backup_path)
            return backup_path

    def record_vault_delete(self, vault: Vault, position: int = 0) -> DeletedVaultRecord:
        """Journal the metadata of a vault about to be deleted."""
        with self._lock:
            record = DeletedVaultRecord(
                vault=vault.model_copy(), deleted_at=self._clock(), position=position
            )
            self._vault_records.append(record)
            return record

    def record_for(self, backup_path: Path) -> Optional[BackupRecord]:
        """Return the live asset record owning ``backup_path``."""
        with self._lock:
            for record in self._asset_records:
                if record.backup_path == backup_path:
                    return record
            return None

    def discard(self, record: BackupRecord) -> None:
        """Drop a live asset record together with its backup file."""
        with self._lock:
            if record in self._asset_records:
                self._asset_records.remove(record)
            try:
                record.backup_path.unlink(missing_ok=True)
            except OSError as exc:
                LOGGER.warning("Unable to remove backup %s: %s", record.backup_path, exc)

    # ------------------------------------------------------------------ #
    # Undo                                                               #
    # ------------------------------------------------------------------ #

    def undo_last_asset_delete(self) -> UndoResult:
        """Restore the most recently deleted asset if it is still within the window."""
        with self._lock:
            if not self._asset_records:
                return UndoResult(UndoOutcome.NOTHING_TO_UNDO, message="Nothing to undo.")

            record = self._asset_records[-1]
            if self.is_expired(record.deleted_at):
                self._asset_records.pop()
                LOGGER.info("Discarded expired backup of %s", record.asset.filename)
                return UndoResult(
                    UndoOutcome.EXPIRED,
                    record=record,
                    message=f"The deletion of {record.asset.filename} can no longer be undone.",
                )

            vault_id = record.asset.vault_id
            if vault_id not in self._registry:
                return UndoResult(
                    UndoOutcome.FAILED,
                    record=record,
                    message=(
                        f"Vault {vault_id} no longer exists; undo the vault deletion "
                        "before restoring its files."
                    ),
                )

            try:
                self._layout.vault_directory(vault_id)
                destination = record.asset.file_path
                if destination.exists():
                    destination = available_path(destination)
                shutil.move(str(record.backup_path), str(destination))
            except (OSError, StorageIOError) as exc:
                LOGGER.error("Restore of %s failed: %s", record.asset.filename, exc)
                return UndoResult(
                    UndoOutcome.FAILED,
                    record=record,
                    message=f"Unable to restore {record.asset.filename}: {exc}",
                )

            self._asset_records.pop()
            self._registry.adjust_count(vault_id, 1)
            LOGGER.info("Restored %s", destination)
            return UndoResult(
                UndoOutcome.RESTORED,
                record=record,
                restored_path=destination,
                message=f"Restored {destination.name}.",
            )

    def undo_last_vault_delete(self) -> UndoResult:
        """Restore the most recently deleted vault's metadata and empty directory.

        The vault's files come back only through their own asset records.
        """
        with self._lock:
            if not self._vault_records:
                return UndoResult(UndoOutcome.NOTHING_TO_UNDO, message="Nothing to undo.")

            record = self._vault_records[-1]
            if self.is_expired(record.deleted_at):
                self._vault_records.pop()
                return UndoResult(
                    UndoOutcome.EXPIRED,
                    record=record,
                    message=(
                        f"The deletion of {record.vault.display_name} can no longer be undone."
                    ),
                )

            try:
                self._layout.vault_directory(record.vault.id)
            except StorageIOError as exc:
                return UndoResult(
                    UndoOutcome.FAILED,
                    record=record,
                    message=f"Unable to recreate {record.vault.display_name}: {exc}",
                )

            restored = record.vault.model_copy(update={"image_count": 0})
            self._registry.insert(restored, record.position)
            self._vault_records.pop()
            LOGGER.info("Restored vault %s", restored.id)
            return UndoResult(
                UndoOutcome.RESTORED,
                record=record,
                restored_path=self._layout.vault_path(restored.id),
                message=f"Restored {restored.display_name}.",
            )

    # ------------------------------------------------------------------ #
    # Cleanup                                                            #
    # ------------------------------------------------------------------ #

    def cleanup_expired(self) -> CleanupReport:
        """Purge expired journal entries and unreferenced backup files."""
        with self._lock:
            report = CleanupReport()
            live_assets = [r for r in self._asset_records if not self.is_expired(r.deleted_at)]
            live_vaults = [r for r in self._vault_records if not self.is_expired(r.deleted_at)]
            report.expired_assets = len(self._asset_records) - len(live_assets)
            report.expired_vaults = len(self._vault_records) - len(live_vaults)
            self._asset_records = live_assets
            self._vault_records = live_vaults

            referenced = {record.backup_path.name for record in live_assets}
            try:
                entries = list(self._layout.backups_directory().iterdir())
            except (OSError, StorageIOError) as exc:
                LOGGER.warning("Unable to scan backups: %s", exc)
                return report

            for entry in entries:
                if entry.name in referenced or not entry.is_file():
                    continue
                try:
                    entry.unlink()
                except OSError as exc:
                    LOGGER.warning("Unable to remove stale backup %s: %s", entry, exc)
                    continue
                report.removed_files.append(entry)

            if report.expired_assets or report.expired_vaults or report.removed_files:
                LOGGER.info(
                    "Cleanup expired %d asset and %d vault records, removed %d files",
                    report.expired_assets,
                    report.expired_vaults,
                    len(report.removed_files),
                )
            return report

    def _unique_backup_path(self, backups: Path, asset: Asset) -> Path:
        referenced = {record.backup_path.name for record in self._asset_records}
        while True:
            name = backup_filename(asset.vault_id, secrets.token_hex(4), asset.filename)
            candidate = backups / name
            if name not in referenced and not candidate.exists():
                return candidate


def backup_filename(vault_id: str, token: str, filename: str) -> str:
    """Return ``<vaultId>_<token>_<filename>`` cut to fit the filesystem name limit.

    The stem is shortened first; the extension is kept whenever it fits.
    """
    prefix = f"{vault_id}_{token}_"
    suffix = Path(filename).suffix
    stem = filename[: len(filename) - len(suffix)]
    budget = MAX_FILENAME_BYTES - len(prefix.encode("utf-8")) - len(suffix.encode("utf-8"))
    if budget < 0:
        stem, suffix = filename, ""
        budget = MAX_FILENAME_BYTES - len(prefix.encode("utf-8"))
    trimmed = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
    return f"{prefix}{trimmed}{suffix}"


def _remove_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to remove partial backup %s: %s", path, exc)


__all__ = ["UndoManager", "DEFAULT_UNDO_WINDOW", "MAX_FILENAME_BYTES", "backup_filename"]
