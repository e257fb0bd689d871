"""Logger factory for the ``todos.*`` namespace."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from core.settings import LOGGING

ROOT_LOGGER = "todos"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _ensure_root() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        if LOGGING.to_file:
            LOGGING.file.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = RotatingFileHandler(
                LOGGING.file,
                maxBytes=LOGGING.max_bytes,
                backupCount=LOGGING.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.NullHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(LOGGING.level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``todos.<name>``, attaching the shared handler on first use."""
    _ensure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


__all__ = ["get_logger", "LOG_FORMAT"]
