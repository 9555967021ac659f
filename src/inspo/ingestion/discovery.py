"""Vault directory listing."""

from __future__ import annotations

import logging
from typing import Iterable

from inspo.errors import StorageIOError
from inspo.storage import StorageLayout

from .detectors import MediaTypeDetector
from .models import Asset

LOGGER = logging.getLogger(__name__)


class AssetLoader:
    """Enumerate a vault directory and classify its media files."""

    def __init__(self, layout: StorageLayout, detector: MediaTypeDetector) -> None:
        self._layout = layout
        self._detector = detector

    @property
    def detector(self) -> MediaTypeDetector:
        """Return the detector deciding which files count as media."""
        return self._detector

    def list_assets(self, vault_id: str) -> list[Asset]:
        """Return one fresh asset per supported file in the vault directory.

        Order follows the directory listing. Unsupported files are skipped
        silently; unreadable directories yield an empty list.
        """
        try:
            directory = self._layout.vault_directory(vault_id)
            entries = list(directory.iterdir())
        except (OSError, StorageIOError) as exc:
            LOGGER.warning("Unable to list vault %s: %s", vault_id, exc)
            return []

        assets: list[Asset] = []
        for path in entries:
            kind = self._detector.classify(path)
            if kind is None:
                continue
            try:
                if not path.is_file():
                    continue
            except OSError:
                continue
            assets.append(Asset.from_path(path, vault_id, kind))
        LOGGER.debug("Listed %d assets in vault %s", len(assets), vault_id)
        return assets

    def count_assets(self, vault_id: str) -> int:
        """Return the number of supported files currently in the vault."""
        return len(self.list_assets(vault_id))


def sort_by_recency(assets: Iterable[Asset]) -> list[Asset]:
    """Return ``assets`` newest first."""
    return sorted(assets, key=lambda asset: asset.date_added, reverse=True)


__all__ = ["AssetLoader", "sort_by_recency"]
