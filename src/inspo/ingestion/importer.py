"""Copy dropped files and pasted bytes into a vault."""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path

from inspo.errors import NotFoundError, StorageIOError, UnsupportedMediaError
from inspo.storage import StorageLayout

from .detectors import MediaTypeDetector
from .models import Asset

LOGGER = logging.getLogger(__name__)


class AssetImporter:
    """Write new media into vault directories."""

    def __init__(self, layout: StorageLayout, detector: MediaTypeDetector) -> None:
        self._layout = layout
        self._detector = detector

    def save_from_path(self, source: Path, vault_id: str) -> Asset:
        """Copy ``source`` into the vault under its original filename.

        Args:
            source: Dropped file.
            vault_id: Destination vault.

        Returns:
            Asset: Record describing the copied file.

        Raises:
            NotFoundError: If ``source`` does not exist.
            UnsupportedMediaError: If ``source`` is not a supported media type.
            StorageIOError: If the copy fails.
        """
        source = Path(source).expanduser()
        if not source.is_file():
            raise NotFoundError(f"No file at {source}")
        kind = self._detector.classify(source)
        if kind is None:
            raise UnsupportedMediaError(f"Unsupported media type: {source.name}")

        directory = self._layout.vault_directory(vault_id)
        destination = available_path(directory / source.name)
        try:
            shutil.copy2(source, destination)
        except OSError as exc:
            LOGGER.error("Failed to copy %s into vault %s: %s", source, vault_id, exc)
            raise StorageIOError(f"Unable to copy {source.name}: {exc}") from exc

        LOGGER.debug("Saved %s as %s", source, destination)
        return Asset.from_path(destination, vault_id, kind)

    def save_from_bytes(self, data: bytes, vault_id: str, extension: str = "png") -> Asset:
        """Write raw media bytes into the vault under a generated filename.

        Raises:
            UnsupportedMediaError: If ``extension`` is not a supported media type.
            StorageIOError: If the write fails.
        """
        extension = extension.lower().lstrip(".") or "png"
        filename = f"image_{str(uuid.uuid4()).upper()}.{extension}"
        kind = self._detector.classify(filename)
        if kind is None:
            raise UnsupportedMediaError(f"Unsupported media extension: {extension}")

        destination = self._layout.vault_directory(vault_id) / filename
        try:
            destination.write_bytes(data)
        except OSError as exc:
            LOGGER.error("Failed to write %s: %s", destination, exc)
            raise StorageIOError(f"Unable to write {filename}: {exc}") from exc

        LOGGER.debug("Saved %d bytes as %s", len(data), destination)
        return Asset.from_path(destination, vault_id, kind)


def available_path(candidate: Path) -> Path:
    """Return ``candidate`` or the first ``stem-N`` sibling that does not exist yet."""
    final_candidate = candidate
    counter = 1
    while final_candidate.exists():
        final_candidate = candidate.with_name(f"{candidate.stem}-{counter}{candidate.suffix}")
        counter += 1
    return final_candidate


__all__ = ["AssetImporter", "available_path"]
