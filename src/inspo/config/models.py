"""Configuration models describing library settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class InspoBaseModel(BaseModel):
    """Shared configuration for settings models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(InspoBaseModel):
    """Location and contents of the on-disk library.

    Attributes:
        documents_root: User-scoped documents directory that hosts the library.
        library_dirname: Name of the library directory inside ``documents_root``.
        include_video: Whether video files count as supported media.
    """

    documents_root: str = "~/Documents"
    library_dirname: str = "VisualInspiration"
    include_video: bool = False


class UndoSettings(InspoBaseModel):
    """Time-boxed undo behavior.

    Attributes:
        window_seconds: How long a destructive operation stays reversible.
        cleanup_interval_seconds: Period of the background expiry sweep.
    """

    window_seconds: int = Field(default=600, ge=1)
    cleanup_interval_seconds: int = Field(default=60, ge=1)


class ThumbnailSettings(InspoBaseModel):
    """Preview generation options.

    Attributes:
        max_dimension: Longest edge, in pixels, of generated previews.
        workers: Number of background threads decoding previews.
        video_frame_offset_seconds: Offset of the representative frame for videos.
        ffmpeg_path: Explicit ffmpeg executable; looked up on PATH when unset.
    """

    max_dimension: int = Field(default=360, ge=16)
    workers: int = Field(default=4, ge=1)
    video_frame_offset_seconds: float = Field(default=1.0, ge=0)
    ffmpeg_path: Optional[str] = None


class WatchSettings(InspoBaseModel):
    """Filesystem watcher options.

    Attributes:
        enabled: Whether the library watches vault directories for outside changes.
        debounce_seconds: Quiet period before queued changes are reported.
    """

    enabled: bool = False
    debounce_seconds: float = Field(default=0.5, ge=0)


class LoggingSettings(InspoBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 3


class InspoConfig(InspoBaseModel):
    """Top-level configuration struct.

    Attributes:
        library: Library location settings.
        undo: Undo window settings.
        thumbnails: Preview generation settings.
        watch: Filesystem watcher settings.
        logging: Logging configuration.
    """

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    undo: UndoSettings = Field(default_factory=UndoSettings)
    thumbnails: ThumbnailSettings = Field(default_factory=ThumbnailSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "InspoBaseModel",
    "LibrarySettings",
    "UndoSettings",
    "ThumbnailSettings",
    "WatchSettings",
    "LoggingSettings",
    "InspoConfig",
]
