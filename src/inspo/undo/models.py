"""Undo journal records and outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from inspo.ingestion.models import Asset
from inspo.state.models import Vault


class BackupRecord(BaseModel):
    """Journal entry for one deleted asset.

    Attributes:
        asset: Snapshot of the asset at deletion time.
        backup_path: Location of the copied-aside file.
        deleted_at: Deletion timestamp used for expiry.
    """

    asset: Asset
    backup_path: Path
    deleted_at: datetime


class DeletedVaultRecord(BaseModel):
    """Journal entry for one deleted vault.

    Attributes:
        vault: Snapshot of the vault metadata at deletion time.
        deleted_at: Deletion timestamp used for expiry.
        position: Index the vault held in the ordered list.
    """

    vault: Vault
    deleted_at: datetime
    position: int = 0


class UndoOutcome(str, Enum):
    """Result classification of an undo request."""

    RESTORED = "restored"
    NOTHING_TO_UNDO = "nothing_to_undo"
    EXPIRED = "expired"
    FAILED = "failed"


@dataclass(slots=True)
class UndoResult:
    """Outcome of an undo request.

    Attributes:
        outcome: What happened.
        record: Journal entry the request acted on, if any.
        restored_path: Where a restored asset landed.
        message: Human-readable explanation.
    """

    outcome: UndoOutcome
    record: Optional[Union[BackupRecord, DeletedVaultRecord]] = None
    restored_path: Optional[Path] = None
    message: str = ""

    @property
    def restored(self) -> bool:
        return self.outcome is UndoOutcome.RESTORED


@dataclass(slots=True)
class CleanupReport:
    """Summary of one expiry sweep."""

    expired_assets: int = 0
    expired_vaults: int = 0
    removed_files: list[Path] = field(default_factory=list)


__all__ = [
    "BackupRecord",
    "DeletedVaultRecord",
    "UndoOutcome",
    "UndoResult",
    "CleanupReport",
]
