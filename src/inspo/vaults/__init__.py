"""Vault lifecycle operations and their collaborator interfaces."""

from .collaborators import ConfirmationPrompt, DestinationPicker
from .models import ConfirmationDecision, DestructiveAction, DownloadSummary, OperationResult
from .operations import VaultOperations

__all__ = [
    "VaultOperations",
    "ConfirmationPrompt",
    "DestinationPicker",
    "ConfirmationDecision",
    "DestructiveAction",
    "DownloadSummary",
    "OperationResult",
]
