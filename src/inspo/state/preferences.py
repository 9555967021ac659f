"""Persistence of the small preference document."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from inspo.errors import StorageIOError
from inspo.storage import StorageLayout

from .models import Preferences

LOGGER = logging.getLogger(__name__)


class PreferenceStore:
    """Load and save :class:`Preferences` as ``preferences.json``.

    Read and write failures never escape: a broken document falls back to
    defaults and a failed save keeps the in-memory values for the session.
    """

    def __init__(self, layout: StorageLayout) -> None:
        self._layout = layout
        self._preferences: Preferences | None = None

    @property
    def preferences(self) -> Preferences:
        """Return the loaded preferences, reading them on first access."""
        if self._preferences is None:
            self._preferences = self.load()
        return self._preferences

    def load(self) -> Preferences:
        """Read preferences from disk, returning defaults when missing or invalid."""
        try:
            path = self._layout.preferences_path()
        except StorageIOError:
            self._preferences = Preferences()
            return self._preferences

        preferences = Preferences()
        if path.exists():
            try:
                preferences = Preferences.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError, ValueError) as exc:
                LOGGER.warning("Ignoring unreadable preferences at %s: %s", path, exc)
        self._preferences = preferences
        return preferences

    def save(self) -> bool:
        """Persist the current preferences.

        Returns:
            bool: ``True`` when the document was written.
        """
        payload = self.preferences.model_dump(mode="json")
        try:
            path: Path = self._layout.preferences_path()
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, StorageIOError) as exc:
            LOGGER.warning("Unable to save preferences: %s", exc)
            return False
        return True

    def update(self, **changes: object) -> Preferences:
        """Apply top-level field changes and persist them."""
        self._preferences = self.preferences.model_copy(update=changes)
        self.save()
        return self._preferences


__all__ = ["PreferenceStore"]
