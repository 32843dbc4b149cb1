"""Centralized logger configuration.

Usage:
    from harvest_tui.log import get_logger
    logger = get_logger(__name__)

The terminal belongs to the UI, so records go to a rotating file instead of stderr.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
    else:
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        # nothing may reach stderr while the full-screen UI owns the terminal
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_FORMAT", "get_logger", "setup_logging"]
