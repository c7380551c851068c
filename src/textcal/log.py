"""Logging setup for textcal.

Records go to a single stderr handler as pipe-separated fields with ISO
8601 timestamps, e.g.::

    2025-09-07T12:00:00 | INFO     | textcal.pipeline | Event extracted by 'fallback' strategy
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_installed: logging.Handler | None = None


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if isinstance(number, int):
        return number
    raise ValueError(f"Invalid log level: {level!r}")


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route log records to stderr (or *stream*) at *level*.

    Safe to call more than once: while the handler from an earlier call is
    still attached to the root logger, only the level changes.

    Args:
        level: Level name such as ``"DEBUG"`` or ``"info"``.
        stream: Destination; :data:`sys.stderr` when omitted.

    Raises:
        ValueError: If *level* is not a logging level name.
    """
    global _installed

    number = _level_number(level)
    root = logging.getLogger()
    root.setLevel(number)

    if _installed is not None and _installed in root.handlers:
        _installed.setLevel(number)
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(number)
    root.addHandler(handler)
    _installed = handler


def get_logger(name: str) -> logging.Logger:
    """Shorthand for :func:`logging.getLogger`."""
    return logging.getLogger(name)
