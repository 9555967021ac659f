"""Thumbnail rendering and caching."""

from .cache import ThumbnailCache
from .models import Thumbnail, ThumbnailKind
from .render import ThumbnailRenderer

__all__ = ["ThumbnailCache", "Thumbnail", "ThumbnailKind", "ThumbnailRenderer"]
