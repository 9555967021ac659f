"""Filesystem watcher that flags vaults changed outside the library."""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

LOGGER = logging.getLogger(__name__)


class VaultWatcher:
    """Track which vault directories changed on disk.

    The watchdog observer thread only records vault ids; the primary thread
    collects them with :meth:`drain` once they have been quiet for the
    debounce interval and decides what to reload.
    """

    def __init__(self, vaults_directory: Path, *, debounce_seconds: float = 0.5) -> None:
        """Initialize the watcher.

        Args:
            vaults_directory: Directory holding one subdirectory per vault.
            debounce_seconds: Quiet period before a changed vault is reported.
        """
        self._vaults_directory = Path(vaults_directory).resolve()
        self._debounce_seconds = max(0.0, debounce_seconds)
        self._pending: dict[str, float] = {}
        self._pending_lock = threading.Lock()
        self._observer: Optional[Observer] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Begin observing the vaults directory recursively."""
        if self._observer is not None:
            raise RuntimeError("VaultWatcher is already running.")
        observer = Observer()
        observer.schedule(
            _VaultEventHandler(self), str(self._vaults_directory), recursive=True
        )
        observer.start()
        self._observer = observer
        LOGGER.debug("Watching %s", self._vaults_directory)

    def stop(self) -> None:
        """Stop the observer thread."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def notify(self, path: Path) -> None:
        """Record a change at ``path`` against its owning vault."""
        vault_id = self.vault_id_for(path)
        if vault_id is None:
            return
        with self._pending_lock:
            self._pending[vault_id] = time.monotonic()

    def drain(self, *, force: bool = False) -> set[str]:
        """Return and forget vaults whose changes have settled.

        Args:
            force: Report every pending vault regardless of the debounce interval.
        """
        now = time.monotonic()
        with self._pending_lock:
            ready = {
                vault_id
                for vault_id, changed_at in self._pending.items()
                if force or now - changed_at >= self._debounce_seconds
            }
            for vault_id in ready:
                del self._pending[vault_id]
        return ready

    def vault_id_for(self, path: Path) -> Optional[str]:
        """Return the vault id owning ``path`` or ``None`` outside the vaults directory."""
        try:
            relative = Path(path).relative_to(self._vaults_directory)
        except ValueError:
            return None
        if not relative.parts:
            return None
        return relative.parts[0]


class _VaultEventHandler(FileSystemEventHandler):
    """Forward watchdog events to the owning watcher."""

    def __init__(self, watcher: VaultWatcher) -> None:
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_moved(self, event: FileSystemEvent) -> None:  # pragma: no cover - watchdog-specific
        self._record(event)
        destination = getattr(event, "dest_path", None)
        if destination:
            self._watcher.notify(Path(os.fsdecode(destination)))

    def _record(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher.notify(Path(os.fsdecode(event.src_path)))


__all__ = ["VaultWatcher"]
