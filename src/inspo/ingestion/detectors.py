"""Supported media types and extension classification."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional

IMAGE_EXTENSIONS: FrozenSet[str] = frozenset(
    {"jpg", "jpeg", "png", "gif", "bmp", "tiff", "heic", "webp"}
)
VIDEO_EXTENSIONS: FrozenSet[str] = frozenset({"mp4", "mov", "avi", "mkv", "webm", "m4v", "3gp"})
ANIMATION_CAPABLE_EXTENSIONS: FrozenSet[str] = frozenset({"gif", "webp"})


class MediaKind(str, Enum):
    """Broad classification of a supported media file."""

    IMAGE = "image"
    ANIMATED = "animated"
    VIDEO = "video"


class MediaTypeDetector:
    """Classify files by extension against the supported-type allowlist."""

    def __init__(self, *, include_video: bool = False) -> None:
        self.include_video = include_video

    @property
    def supported_extensions(self) -> FrozenSet[str]:
        """Return the lowercase extensions accepted as media."""
        if self.include_video:
            return IMAGE_EXTENSIONS | VIDEO_EXTENSIONS
        return IMAGE_EXTENSIONS

    def is_supported(self, path: Path | str) -> bool:
        """Return whether ``path`` carries a supported extension."""
        return self.classify(path) is not None

    def classify(self, path: Path | str) -> Optional[MediaKind]:
        """Return the media kind of ``path`` or ``None`` when unsupported."""
        extension = extension_of(path)
        if extension not in self.supported_extensions:
            return None
        if extension in VIDEO_EXTENSIONS:
            return MediaKind.VIDEO
        if extension in ANIMATION_CAPABLE_EXTENSIONS:
            return MediaKind.ANIMATED
        return MediaKind.IMAGE


def extension_of(path: Path | str) -> str:
    """Return the lowercase extension of ``path`` without the leading dot."""
    return Path(path).suffix.lower().lstrip(".")


__all__ = [
    "MediaKind",
    "MediaTypeDetector",
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "ANIMATION_CAPABLE_EXTENSIONS",
    "extension_of",
]
