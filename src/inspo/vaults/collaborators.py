"""Interfaces of the front-end collaborators consulted by vault operations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from inspo.state import Vault

from .models import ConfirmationDecision, DestructiveAction


class ConfirmationPrompt(Protocol):
    """Ask the user to approve an empty/delete operation before it starts."""

    def confirm(self, action: DestructiveAction, vault: Vault) -> ConfirmationDecision: ...


class DestinationPicker(Protocol):
    """Let the user choose where downloads are written."""

    def choose_directory(self, suggested: Optional[Path]) -> Optional[Path]: ...

    def choose_file(self, suggested: Path) -> Optional[Path]: ...


__all__ = ["ConfirmationPrompt", "DestinationPicker"]
