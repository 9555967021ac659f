"""Logging setup for the library and its front-ends."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from inspo.config.models import LoggingSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "inspo-file"


def configure_logging(settings: LoggingSettings, log_path: Path) -> logging.Logger:
    """Attach a rotating file handler to the package logger.

    Calling this repeatedly replaces the previously installed handler, so the
    configured level and destination always reflect the latest settings.

    Args:
        settings: Logging configuration (level and rotation policy).
        log_path: File receiving log records.

    Returns:
        logging.Logger: The configured ``inspo`` package logger.
    """
    logger = logging.getLogger("inspo")
    logger.setLevel(settings.level)

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.backup_count),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning("Unable to open log file %s: %s", log_path, exc)
        return logger

    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "LOG_FORMAT"]
