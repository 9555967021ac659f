"""Application root wiring the vault subsystem together."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from inspo.config import InspoConfig
from inspo.ingestion import AssetImporter, AssetLoader, MediaTypeDetector
from inspo.logs import configure_logging
from inspo.state import PreferenceStore, VaultRegistry
from inspo.storage import StorageLayout
from inspo.thumbnails import ThumbnailCache
from inspo.undo import CleanupReport, UndoManager
from inspo.vaults import ConfirmationPrompt, DestinationPicker, VaultOperations
from inspo.watch import BackgroundScheduler, VaultWatcher

LOGGER = logging.getLogger(__name__)


class InspirationLibrary:
    """Own every component of one library and its background services.

    Background services (the undo cleanup sweep and the optional directory
    watcher) are started once by :meth:`open` and stopped by :meth:`close`.
    """

    def __init__(
        self,
        config: Optional[InspoConfig] = None,
        *,
        prompt: Optional[ConfirmationPrompt] = None,
        picker: Optional[DestinationPicker] = None,
        clock: Optional[Callable[[], datetime]] = None,
        configure_logs: bool = True,
    ) -> None:
        """Build the component graph from configuration.

        Args:
            config: Loaded configuration; defaults are used when omitted.
            prompt: Confirmation collaborator for empty/delete operations.
            picker: Destination collaborator for downloads.
            clock: Time source for undo expiry, mainly for tests.
            configure_logs: Whether to attach the rotating library log.
        """
        self.config = config or InspoConfig()
        library = self.config.library
        self.layout = StorageLayout(library.documents_root, library.library_dirname)
        self.detector = MediaTypeDetector(include_video=library.include_video)
        self.preferences = PreferenceStore(self.layout)
        self.registry = VaultRegistry(self.layout, self.preferences)
        self.loader = AssetLoader(self.layout, self.detector)
        self.importer = AssetImporter(self.layout, self.detector)
        self.undo = UndoManager(
            self.layout,
            self.registry,
            window=timedelta(seconds=self.config.undo.window_seconds),
            clock=clock,
        )
        self.thumbnails = ThumbnailCache(self.config.thumbnails)
        self.operations = VaultOperations(
            registry=self.registry,
            loader=self.loader,
            importer=self.importer,
            undo=self.undo,
            preferences=self.preferences,
            layout=self.layout,
            thumbnails=self.thumbnails,
            prompt=prompt,
            picker=picker,
        )
        self.scheduler = BackgroundScheduler()
        self.watcher: Optional[VaultWatcher] = None
        self._configure_logs = configure_logs
        self._opened = False
        self._cleanup_scheduled = False

    def __enter__(self) -> "InspirationLibrary":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def root(self) -> Path:
        return self.layout.root_directory()

    def open(self, *, background: bool = True) -> "InspirationLibrary":
        """Load vaults, activate the remembered vault, and start background services.

        Args:
            background: Whether to start the cleanup scheduler and watcher threads.
        """
        if self._opened:
            return self
        if self._configure_logs:
            configure_logging(self.config.logging, self.layout.log_path())
        self.registry.load()
        self.operations.open()
        # Backups left by a previous process have no journal entry anymore.
        self.cleanup()

        if background:
            if not self._cleanup_scheduled:
                self.scheduler.every(
                    self.config.undo.cleanup_interval_seconds, self.cleanup, name="undo-cleanup"
                )
                self._cleanup_scheduled = True
            self.scheduler.start()
            if self.config.watch.enabled:
                self.watcher = VaultWatcher(
                    self.layout.vaults_directory(),
                    debounce_seconds=self.config.watch.debounce_seconds,
                )
                self.watcher.start()
        self._opened = True
        LOGGER.info("Opened library at %s with %d vaults", self.root, len(self.registry))
        return self

    def close(self) -> None:
        """Stop background services and decode workers."""
        self.scheduler.stop()
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
        self.thumbnails.shutdown(wait=False)
        self._opened = False

    def cleanup(self) -> CleanupReport:
        """Run one undo expiry sweep."""
        return self.undo.cleanup_expired()

    def poll_changes(self, *, force: bool = False) -> set[str]:
        """Reconcile vaults the watcher saw change; return the refreshed vault ids."""
        if self.watcher is None:
            return set()
        changed = self.watcher.drain(force=force)
        for vault_id in changed:
            self.operations.refresh_vault(vault_id)
        return changed


__all__ = ["InspirationLibrary"]
