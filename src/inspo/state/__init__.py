"""Vault registry and preference persistence."""

from .models import (
    DEFAULT_VAULT_NAME,
    VAULT_NAME_PLACEHOLDER,
    ConfirmationPreferences,
    Preferences,
    Vault,
)
from .preferences import PreferenceStore
from .registry import VaultRegistry

__all__ = [
    "VaultRegistry",
    "PreferenceStore",
    "Vault",
    "Preferences",
    "ConfirmationPreferences",
    "DEFAULT_VAULT_NAME",
    "VAULT_NAME_PLACEHOLDER",
]
