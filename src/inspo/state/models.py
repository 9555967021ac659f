"""Persisted state models: vaults and user preferences."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VAULT_NAME = "All Images"
VAULT_NAME_PLACEHOLDER = "Vault name"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Vault(BaseModel):
    """A user-named collection of media files backed by one directory.

    Attributes:
        id: Opaque unique identifier, immutable after creation.
        name: Display name; may be empty.
        created_at: Creation timestamp, serialized as ``createdAt``.
        image_count: Advisory count of assets, serialized as ``imageCount``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    image_count: int = Field(default=0, ge=0, alias="imageCount")

    @property
    def display_name(self) -> str:
        """Return the name shown to users, substituting a placeholder when empty."""
        return self.name or VAULT_NAME_PLACEHOLDER


class ConfirmationPreferences(BaseModel):
    """Sticky "don't ask again" flags for destructive batch operations."""

    skip_empty_vault: bool = False
    skip_delete_vault: bool = False


class Preferences(BaseModel):
    """Small preference document stored beside the vault list.

    Attributes:
        current_vault_id: Vault opened last, so sessions resume where they left off.
        confirmations: Skip flags for the empty/delete confirmation prompts.
        download_directory: Remembered destination for downloads.
    """

    current_vault_id: Optional[str] = None
    confirmations: ConfirmationPreferences = Field(default_factory=ConfirmationPreferences)
    download_directory: Optional[str] = None


__all__ = [
    "Vault",
    "ConfirmationPreferences",
    "Preferences",
    "DEFAULT_VAULT_NAME",
    "VAULT_NAME_PLACEHOLDER",
]
