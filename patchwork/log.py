"""Logging setup for the 'patchwork' namespace."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """Configure the 'patchwork' logger and return it.

    The root logger stays at WARNING. The console handler uses the
    requested level; the optional file handler always records DEBUG.
    Calling this again replaces the previous handlers.
    """
    logging.getLogger().setLevel(logging.WARNING)

    app_logger = logging.getLogger("patchwork")
    app_logger.setLevel(min(level, logging.DEBUG) if log_file else level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    app_logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        app_logger.addHandler(file_handler)

    app_logger.propagate = False
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger under the 'patchwork' root."""
    if name.startswith("patchwork."):
        name = name[len("patchwork."):]
    return logging.getLogger("patchwork").getChild(name)
