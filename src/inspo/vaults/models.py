"""Result and decision types exchanged with front-ends."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class DestructiveAction(str, Enum):
    """Batch operations gated by a confirmation prompt."""

    EMPTY_VAULT = "empty_vault"
    DELETE_VAULT = "delete_vault"


@dataclass(frozen=True, slots=True)
class ConfirmationDecision:
    """Answer of the confirmation collaborator.

    Attributes:
        accepted: Whether the user approved the operation.
        dont_ask_again: Whether future prompts for the same action are skipped.
    """

    accepted: bool
    dont_ask_again: bool = False


@dataclass(slots=True)
class OperationResult:
    """Outcome of a vault operation.

    Attributes:
        action: Operation name.
        ok: Whether the operation completed.
        cancelled: Whether the user declined the confirmation prompt.
        processed: Number of files handled before the operation stopped.
        error: Failure description when ``ok`` is false.
    """

    action: str
    ok: bool = True
    cancelled: bool = False
    processed: int = 0
    error: Optional[str] = None

    @classmethod
    def failure(cls, action: str, error: str, *, processed: int = 0) -> "OperationResult":
        return cls(action=action, ok=False, processed=processed, error=error)

    @classmethod
    def cancel(cls, action: str) -> "OperationResult":
        return cls(action=action, ok=False, cancelled=True)


@dataclass(slots=True)
class DownloadSummary:
    """Per-file report of a copy-out operation."""

    destination: Optional[Path] = None
    copied: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.cancelled and not self.failed


__all__ = ["DestructiveAction", "ConfirmationDecision", "OperationResult", "DownloadSummary"]
