"""Process-wide preview cache fed by background decode workers."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from inspo.config.models import ThumbnailSettings
from inspo.errors import DecodeError

from .models import Thumbnail
from .render import ThumbnailRenderer

LOGGER = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class ThumbnailCache:
    """Cache previews by absolute file path and render misses on a thread pool.

    Writes are keyed and idempotent, so concurrent renders of one path only
    duplicate work; the last writer wins with equivalent bytes. There is no
    size cap and no invalidation when a file is overwritten in place.

    The decode pool is created on first use. After :meth:`shutdown` a cache
    that owns its pool builds a fresh one on the next miss.
    """

    def __init__(
        self,
        settings: Optional[ThumbnailSettings] = None,
        *,
        renderer: Optional[ThumbnailRenderer] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        """Initialize the cache.

        Args:
            settings: Preview size, worker count, and video options.
            renderer: Decoder producing previews; built from ``settings`` when omitted.
            executor: Externally managed decode pool; the cache then never rebuilds it.
            dispatcher: Runs ``on_ready`` callbacks, e.g. by posting them to a UI
                thread's queue. Without one, callbacks run on the decode worker.
        """
        self._settings = settings or ThumbnailSettings()
        self._renderer = renderer or ThumbnailRenderer(
            video_frame_offset_seconds=self._settings.video_frame_offset_seconds,
            ffmpeg_path=self._settings.ffmpeg_path,
        )
        self._executor = executor
        self._owns_executor = executor is None
        self._executor_lock = threading.Lock()
        self._dispatch = dispatcher or _call_now
        self._entries: dict[str, Thumbnail] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, path: Path | str) -> Optional[Thumbnail]:
        """Return the cached preview for ``path`` if present."""
        return self._entries.get(_key(path))

    def get_or_create(
        self,
        path: Path | str,
        max_dimension: Optional[int] = None,
        *,
        on_ready: Optional[Callable[[Thumbnail], None]] = None,
    ) -> Future[Thumbnail]:
        """Return a future resolving to the preview of ``path``.

        Args:
            path: Media file to preview.
            max_dimension: Longest preview edge; defaults to the configured size.
            on_ready: Callback receiving the preview once it is cached. It is
                handed to the dispatcher, so it runs on the decode worker
                unless a dispatcher forwards it elsewhere.

        Returns:
            Future[Thumbnail]: Already resolved on a cache hit.
        """
        key = _key(path)
        cached = self._entries.get(key)
        if cached is not None:
            future: Future[Thumbnail] = Future()
            future.set_result(cached)
            if on_ready is not None:
                self._dispatch(lambda: on_ready(cached))
            return future

        dimension = max_dimension or self._settings.max_dimension
        future = self._pool().submit(self._render, Path(key), dimension)
        if on_ready is not None:
            future.add_done_callback(
                lambda done: self._dispatch(lambda: on_ready(done.result()))
            )
        return future

    def invalidate(self, path: Path | str) -> None:
        """Forget the preview of ``path``."""
        self._entries.pop(_key(path), None)

    def clear(self) -> None:
        self._entries.clear()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the decode workers; cached previews are kept."""
        with self._executor_lock:
            executor = self._executor
            if self._owns_executor:
                self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _pool(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._settings.workers, thread_name_prefix="inspo-thumbnail"
                )
            return self._executor

    def _render(self, path: Path, max_dimension: int) -> Thumbnail:
        try:
            thumbnail = self._renderer.render(path, max_dimension)
        except DecodeError as exc:
            LOGGER.debug("Using placeholder for %s: %s", path, exc)
            thumbnail = self._renderer.placeholder(path, max_dimension)
        except Exception:
            LOGGER.exception("Unexpected failure rendering %s; using placeholder", path)
            thumbnail = self._renderer.placeholder(path, max_dimension)
        self._entries[str(path)] = thumbnail
        return thumbnail


def _key(path: Path | str) -> str:
    return str(Path(path).expanduser().absolute())


__all__ = ["ThumbnailCache", "Dispatcher"]
