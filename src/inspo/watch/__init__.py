"""Background services: periodic jobs and the vault directory watcher."""

from .scheduler import BackgroundScheduler, ScheduledJob
from .service import VaultWatcher

__all__ = ["BackgroundScheduler", "ScheduledJob", "VaultWatcher"]
