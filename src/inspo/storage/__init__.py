"""Storage layout helpers."""

from .layout import (
    BACKUPS_DIRNAME,
    METADATA_FILENAME,
    PREFERENCES_FILENAME,
    VAULTS_DIRNAME,
    StorageLayout,
)

__all__ = [
    "StorageLayout",
    "BACKUPS_DIRNAME",
    "METADATA_FILENAME",
    "PREFERENCES_FILENAME",
    "VAULTS_DIRNAME",
]
