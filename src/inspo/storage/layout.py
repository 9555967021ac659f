"""On-disk directory scheme of the library."""

from __future__ import annotations

import logging
from pathlib import Path

from inspo.errors import StorageIOError

LOGGER = logging.getLogger(__name__)

DEFAULT_LIBRARY_DIRNAME = "VisualInspiration"
VAULTS_DIRNAME = "Vaults"
BACKUPS_DIRNAME = "Backups"
METADATA_FILENAME = "vaults.json"
PREFERENCES_FILENAME = "preferences.json"
LOG_FILENAME = "inspo.log"


class StorageLayout:
    """Compute and lazily create the library directory layout.

    Every directory accessor guarantees the directory exists when it returns.
    The layout never deletes anything.
    """

    def __init__(
        self,
        documents_root: Path | str,
        library_dirname: str = DEFAULT_LIBRARY_DIRNAME,
    ) -> None:
        """Initialize the layout.

        Args:
            documents_root: User-scoped documents directory hosting the library.
            library_dirname: Name of the library directory inside ``documents_root``.
        """
        self._root = Path(documents_root).expanduser() / library_dirname

    def root_directory(self) -> Path:
        """Return the library root, creating it if missing."""
        return self._ensure(self._root)

    def vaults_directory(self) -> Path:
        """Return the directory holding one subdirectory per vault."""
        return self._ensure(self.root_directory() / VAULTS_DIRNAME)

    def backups_directory(self) -> Path:
        """Return the flat directory of transient backup copies."""
        return self._ensure(self.root_directory() / BACKUPS_DIRNAME)

    def vault_directory(self, vault_id: str) -> Path:
        """Return the directory of ``vault_id``, creating it if absent."""
        return self._ensure(self.vaults_directory() / vault_id)

    def vault_path(self, vault_id: str) -> Path:
        """Return the directory path of ``vault_id`` without creating it."""
        return self._root / VAULTS_DIRNAME / vault_id

    def metadata_path(self) -> Path:
        """Return the path of the vault list document."""
        return self.root_directory() / METADATA_FILENAME

    def preferences_path(self) -> Path:
        """Return the path of the preference document."""
        return self.root_directory() / PREFERENCES_FILENAME

    def log_path(self) -> Path:
        """Return the path of the rotating library log."""
        return self._root / LOG_FILENAME

    def _ensure(self, directory: Path) -> Path:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Unable to create directory %s: %s", directory, exc)
            raise StorageIOError(f"Unable to create directory {directory}: {exc}") from exc
        return directory


__all__ = [
    "StorageLayout",
    "DEFAULT_LIBRARY_DIRNAME",
    "VAULTS_DIRNAME",
    "BACKUPS_DIRNAME",
    "METADATA_FILENAME",
    "PREFERENCES_FILENAME",
]
