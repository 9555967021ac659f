"""Asset discovery, classification, and import."""

from .detectors import (
    ANIMATION_CAPABLE_EXTENSIONS,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    MediaKind,
    MediaTypeDetector,
)
from .discovery import AssetLoader, sort_by_recency
from .importer import AssetImporter, available_path
from .models import Asset

__all__ = [
    "Asset",
    "AssetLoader",
    "AssetImporter",
    "MediaKind",
    "MediaTypeDetector",
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "ANIMATION_CAPABLE_EXTENSIONS",
    "available_path",
    "sort_by_recency",
]
