"""Periodic background jobs owned by the application root."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduledJob:
    """A repeating job.

    Attributes:
        name: Identifier used in logs.
        interval: Seconds between runs.
        action: Callable executed on the scheduler thread.
        next_run: Monotonic timestamp of the next run.
    """

    name: str
    interval: float
    action: Callable[[], object]
    next_run: float = 0.0


class BackgroundScheduler:
    """Run registered jobs on one daemon thread until stopped."""

    def __init__(self, *, tick_seconds: float = 1.0) -> None:
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_seconds = tick_seconds

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def every(self, interval: float, action: Callable[[], object], *, name: str) -> ScheduledJob:
        """Register ``action`` to run every ``interval`` seconds, first after one interval."""
        job = ScheduledJob(
            name=name,
            interval=max(0.01, interval),
            action=action,
            next_run=time.monotonic() + interval,
        )
        with self._lock:
            self._jobs.append(job)
        return job

    def start(self) -> None:
        """Start the scheduler thread once."""
        if self.running:
            raise RuntimeError("BackgroundScheduler is already running.")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="inspo-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the thread to exit and wait for it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def run_pending(self) -> int:
        """Run every job whose time has come; return how many ran."""
        now = time.monotonic()
        with self._lock:
            due = [job for job in self._jobs if job.next_run <= now]
        for job in due:
            try:
                job.action()
            except Exception:
                LOGGER.exception("Scheduled job %s failed", job.name)
            job.next_run = time.monotonic() + job.interval
        return len(due)

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            with self._lock:
                upcoming = min((job.next_run for job in self._jobs), default=None)
            timeout = self._tick_seconds
            if upcoming is not None:
                timeout = min(timeout, max(0.0, upcoming - time.monotonic()))
            self._stop_event.wait(timeout)


__all__ = ["BackgroundScheduler", "ScheduledJob"]
