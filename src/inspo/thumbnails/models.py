"""Preview records held by the thumbnail cache."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ThumbnailKind(str, Enum):
    """How a preview was produced."""

    STATIC = "static"
    ANIMATED = "animated"
    VIDEO_FRAME = "video_frame"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True, slots=True)
class Thumbnail:
    """Encoded preview of one media file.

    Attributes:
        path: Absolute path of the source file (the cache key).
        kind: How the preview was produced.
        width: Pixel width of the encoded preview.
        height: Pixel height of the encoded preview.
        data: Encoded image bytes ready for display.
        format: Pillow format name of ``data`` (``PNG``, ``GIF``, ``WEBP``).
    """

    path: str
    kind: ThumbnailKind
    width: int
    height: int
    data: bytes
    format: str = "PNG"

    @property
    def is_placeholder(self) -> bool:
        return self.kind is ThumbnailKind.PLACEHOLDER


__all__ = ["Thumbnail", "ThumbnailKind"]
