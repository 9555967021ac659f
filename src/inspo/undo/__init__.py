"""Undo journal and backup management."""

from .manager import DEFAULT_UNDO_WINDOW, UndoManager
from .models import BackupRecord, CleanupReport, DeletedVaultRecord, UndoOutcome, UndoResult

__all__ = [
    "UndoManager",
    "DEFAULT_UNDO_WINDOW",
    "BackupRecord",
    "DeletedVaultRecord",
    "CleanupReport",
    "UndoOutcome",
    "UndoResult",
]
