"""Decode media files into bounded-size previews."""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from inspo.errors import DecodeError
from inspo.ingestion.detectors import VIDEO_EXTENSIONS, extension_of

from .models import Thumbnail, ThumbnailKind

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_COLOR = (77, 77, 77)
_FFMPEG_TIMEOUT_SECONDS = 30
_DECODE_FAILURES = (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError)


class ThumbnailRenderer:
    """Produce previews without decoding static images at full resolution."""

    def __init__(
        self,
        *,
        video_frame_offset_seconds: float = 1.0,
        ffmpeg_path: Optional[str] = None,
    ) -> None:
        self.video_frame_offset_seconds = video_frame_offset_seconds
        self._ffmpeg_path = ffmpeg_path

    def render(self, path: Path, max_dimension: int) -> Thumbnail:
        """Return a preview of ``path`` bounded by ``max_dimension``.

        Raises:
            DecodeError: If no preview can be produced.
        """
        if extension_of(path) in VIDEO_EXTENSIONS:
            return self._render_video(path, max_dimension)

        try:
            with Image.open(path) as image:
                if getattr(image, "is_animated", False):
                    return self._keep_animation(path, image)
                return self._downsample(path, image, max_dimension, ThumbnailKind.STATIC)
        except _DECODE_FAILURES as exc:
            raise DecodeError(f"Unable to decode {path.name}: {exc}") from exc

    def placeholder(self, path: Path | str, max_dimension: int) -> Thumbnail:
        """Return a grey 4:3 tile standing in for an undecodable file."""
        width = max_dimension
        height = max(1, int(max_dimension * 0.75))
        buffer = io.BytesIO()
        Image.new("RGB", (width, height), PLACEHOLDER_COLOR).save(buffer, format="PNG")
        return Thumbnail(
            path=str(path),
            kind=ThumbnailKind.PLACEHOLDER,
            width=width,
            height=height,
            data=buffer.getvalue(),
        )

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _downsample(
        self,
        path: Path,
        image: Image.Image,
        max_dimension: int,
        kind: ThumbnailKind,
    ) -> Thumbnail:
        # draft() lets JPEG decode at a reduced scale instead of full size.
        image.draft("RGB", (max_dimension, max_dimension))
        preview = ImageOps.exif_transpose(image)
        preview.thumbnail((max_dimension, max_dimension))
        if preview.mode not in ("RGB", "RGBA", "L", "LA"):
            preview = preview.convert("RGBA")
        buffer = io.BytesIO()
        preview.save(buffer, format="PNG")
        return Thumbnail(
            path=str(path),
            kind=kind,
            width=preview.width,
            height=preview.height,
            data=buffer.getvalue(),
        )

    def _keep_animation(self, path: Path, image: Image.Image) -> Thumbnail:
        return Thumbnail(
            path=str(path),
            kind=ThumbnailKind.ANIMATED,
            width=image.width,
            height=image.height,
            data=path.read_bytes(),
            format=image.format or "GIF",
        )

    def _render_video(self, path: Path, max_dimension: int) -> Thumbnail:
        frame = self._extract_frame(path)
        try:
            with Image.open(io.BytesIO(frame)) as image:
                return self._downsample(path, image, max_dimension, ThumbnailKind.VIDEO_FRAME)
        except _DECODE_FAILURES as exc:
            raise DecodeError(f"Unable to decode frame of {path.name}: {exc}") from exc

    def _extract_frame(self, path: Path) -> bytes:
        ffmpeg = self._ffmpeg_path or shutil.which("ffmpeg")
        if ffmpeg is None:
            raise DecodeError("ffmpeg is not available for video previews.")
        command = [
            ffmpeg,
            "-loglevel",
            "error",
            "-ss",
            f"{self.video_frame_offset_seconds:g}",
            "-i",
            str(path),
            "-frames:v",
            "1",
            "-f",
            "image2pipe",
            "-vcodec",
            "png",
            "-",
        ]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                check=False,
                timeout=_FFMPEG_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise DecodeError(f"ffmpeg failed for {path.name}: {exc}") from exc
        if completed.returncode != 0 or not completed.stdout:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise DecodeError(f"ffmpeg produced no frame for {path.name}: {stderr}")
        return completed.stdout


__all__ = ["ThumbnailRenderer", "PLACEHOLDER_COLOR"]
