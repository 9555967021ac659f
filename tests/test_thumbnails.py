"""Preview rendering and cache tests."""

from __future__ import annotations

import io
import queue
import shutil
import threading
from pathlib import Path
from typing import Callable, Iterator

import pytest
from PIL import Image

from inspo.config.models import ThumbnailSettings
from inspo.errors import DecodeError
from inspo.thumbnails import Thumbnail, ThumbnailCache, ThumbnailKind, ThumbnailRenderer


def _image(path: Path, size: tuple[int, int]) -> Path:
    Image.new("RGB", size, color="orange").save(path)
    return path


def _animated_gif(path: Path) -> Path:
    frames = [Image.new("RGB", (40, 30), color=color) for color in ("red", "blue", "green")]
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=100, loop=0)
    return path


@pytest.fixture
def cache() -> Iterator[ThumbnailCache]:
    cache = ThumbnailCache(ThumbnailSettings(max_dimension=64, workers=2))
    yield cache
    cache.shutdown()


def test_static_image_is_downsampled(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = _image(tmp_path / "wide.jpg", (400, 200))

    thumbnail = cache.get_or_create(source).result(timeout=10)

    assert thumbnail.kind is ThumbnailKind.STATIC
    assert (thumbnail.width, thumbnail.height) == (64, 32)
    with Image.open(io.BytesIO(thumbnail.data)) as decoded:
        assert decoded.format == "PNG"
        assert decoded.size == (64, 32)


def test_small_image_keeps_its_size(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = _image(tmp_path / "tiny.png", (10, 20))

    thumbnail = cache.get_or_create(source, 256).result(timeout=10)

    assert (thumbnail.width, thumbnail.height) == (10, 20)


def test_exif_orientation_is_applied(tmp_path: Path) -> None:
    source = tmp_path / "rotated.jpg"
    exif = Image.Exif()
    exif[0x0112] = 6
    Image.new("RGB", (80, 40), color="white").save(source, exif=exif)

    thumbnail = ThumbnailRenderer().render(source, 80)

    assert (thumbnail.width, thumbnail.height) == (40, 80)


def test_animated_gif_keeps_original_bytes(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = _animated_gif(tmp_path / "loop.gif")

    thumbnail = cache.get_or_create(source).result(timeout=10)

    assert thumbnail.kind is ThumbnailKind.ANIMATED
    assert thumbnail.format == "GIF"
    assert thumbnail.data == source.read_bytes()


def test_corrupt_file_yields_placeholder(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = tmp_path / "broken.png"
    source.write_bytes(b"definitely not a png")

    thumbnail = cache.get_or_create(source).result(timeout=10)

    assert thumbnail.is_placeholder
    assert (thumbnail.width, thumbnail.height) == (64, 48)
    with Image.open(io.BytesIO(thumbnail.data)) as decoded:
        assert decoded.getpixel((0, 0)) == (77, 77, 77)


def test_video_without_ffmpeg_yields_placeholder(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cache: ThumbnailCache
) -> None:
    monkeypatch.setattr(shutil, "which", lambda _name: None)
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"\x00\x00\x00\x18ftypmp42")

    with pytest.raises(DecodeError):
        ThumbnailRenderer().render(source, 64)
    assert cache.get_or_create(source).result(timeout=10).is_placeholder


def test_cache_hit_returns_resolved_future(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = _image(tmp_path / "a.png", (100, 100))
    first = cache.get_or_create(source).result(timeout=10)
    received: list[object] = []

    future = cache.get_or_create(source, on_ready=received.append)

    assert future.done()
    assert future.result() is first
    assert received == [first]
    assert cache.get(source) is first
    assert len(cache) == 1


def test_on_ready_runs_after_background_render(tmp_path: Path, cache: ThumbnailCache) -> None:
    source = _image(tmp_path / "b.png", (100, 50))
    ready = threading.Event()
    received: list[object] = []

    def _on_ready(thumbnail: object) -> None:
        received.append(thumbnail)
        ready.set()

    cache.get_or_create(source, on_ready=_on_ready)

    assert ready.wait(timeout=10)
    assert received[0] is cache.get(source)


def test_invalidate_and_clear(tmp_path: Path, cache: ThumbnailCache) -> None:
    first = _image(tmp_path / "one.png", (50, 50))
    second = _image(tmp_path / "two.png", (50, 50))
    cache.get_or_create(first).result(timeout=10)
    cache.get_or_create(second).result(timeout=10)

    cache.invalidate(first)
    assert cache.get(first) is None
    assert cache.get(second) is not None

    cache.clear()
    assert len(cache) == 0


def test_decompression_bomb_yields_placeholder(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cache: ThumbnailCache
) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    source = _image(tmp_path / "huge.png", (100, 100))
    ready = threading.Event()
    received: list[object] = []

    def _on_ready(thumbnail: object) -> None:
        received.append(thumbnail)
        ready.set()

    with pytest.raises(DecodeError):
        ThumbnailRenderer().render(source, 64)
    thumbnail = cache.get_or_create(source, on_ready=_on_ready).result(timeout=10)

    assert thumbnail.is_placeholder
    assert ready.wait(timeout=10)
    assert received == [thumbnail]
    assert cache.get(source) is thumbnail


def test_unexpected_renderer_failure_yields_placeholder(tmp_path: Path) -> None:
    class _Broken(ThumbnailRenderer):
        def render(self, path: Path, max_dimension: int) -> Thumbnail:
            raise RuntimeError("decoder crashed")

    cache = ThumbnailCache(ThumbnailSettings(max_dimension=64), renderer=_Broken())
    try:
        thumbnail = cache.get_or_create(_image(tmp_path / "a.png", (20, 20))).result(timeout=10)
    finally:
        cache.shutdown()

    assert thumbnail.is_placeholder


def test_dispatcher_delivers_callbacks(tmp_path: Path) -> None:
    posted: "queue.Queue[Callable[[], None]]" = queue.Queue()
    cache = ThumbnailCache(ThumbnailSettings(max_dimension=64), dispatcher=posted.put)
    received: list[Thumbnail] = []
    try:
        source = _image(tmp_path / "c.png", (100, 50))
        cache.get_or_create(source, on_ready=received.append).result(timeout=10)
        callback = posted.get(timeout=10)
    finally:
        cache.shutdown()

    assert received == []
    callback()
    assert received == [cache.get(source)]


def test_cache_renders_again_after_shutdown(tmp_path: Path, cache: ThumbnailCache) -> None:
    cache.shutdown()

    thumbnail = cache.get_or_create(_image(tmp_path / "d.png", (30, 30))).result(timeout=10)

    assert (thumbnail.width, thumbnail.height) == (30, 30)
