"""Logging helpers shared by the build modules.

Keeps handler setup in one place and provides small utilities for structured
DEBUG records (``extra_context``) and timing tool invocations (``Timer``).
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants

_ROOT_LOGGER_NAME = ""


def configure_logging(level: str = "INFO", log_file: Optional[str] = None, quiet: bool = False) -> None:
    """Install the console (and optional file) handler on the root logger.

    Args:
        level: Logging level name, e.g. "DEBUG".
        log_file: Optional path of a log file receiving the same records.
        quiet: When True only errors reach the console.
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    level_value = getattr(logging, str(level).upper(), logging.INFO)
    root.setLevel(level_value)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(stream=sys.stderr)
    console.setLevel(logging.ERROR if quiet else level_value)
    console.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        root.addHandler(file_handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when the logger would emit DEBUG records."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    None values are dropped so formatters only see populated fields.
    """
    return {k: v for k, v in fields.items() if v is not None}


class Timer:
    """Context manager measuring wall time in milliseconds."""

    def __init__(self):
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.monotonic()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.monotonic()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.monotonic()
        return int((end - self._start) * 1000)
