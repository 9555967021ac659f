"""In-memory asset records."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from .detectors import MediaKind


class Asset(BaseModel):
    """One media file inside a vault at listing time.

    The ``id`` is regenerated every time the vault is listed and is only
    meaningful within one load cycle; ``file_path`` is the durable identity.

    Attributes:
        id: Identifier scoped to a single load cycle.
        filename: Last path component of ``file_path``.
        file_path: Absolute path of the media file.
        vault_id: Identifier of the owning vault.
        kind: Media classification derived from the extension.
        date_added: Modification time of the file, used for recency sorting.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    filename: str
    file_path: Path
    vault_id: str
    kind: MediaKind = MediaKind.IMAGE
    date_added: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_path(cls, path: Path, vault_id: str, kind: MediaKind) -> "Asset":
        """Build a fresh asset record for ``path``."""
        try:
            modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        except OSError:
            modified = datetime.now(timezone.utc)
        return cls(
            filename=path.name,
            file_path=path,
            vault_id=vault_id,
            kind=kind,
            date_added=modified,
        )


__all__ = ["Asset"]
