"""
Logging configuration for snaptest entry points.

Library modules only call ``logging.getLogger(__name__)``; the CLI (or a
test session) calls ``setup_logging()`` once to attach a rich handler to
the ``snaptest`` logger.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "SNAPTEST_LOG_LEVEL"

_initialized = False


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    if isinstance(level, int):
        return level
    raw = str(level or os.environ.get(LOG_LEVEL_ENV, "INFO") or "INFO").strip().upper()
    if raw == "DEBUG":
        return logging.DEBUG
    if raw == "WARNING" or raw == "WARN":
        return logging.WARNING
    if raw == "ERROR":
        return logging.ERROR
    if raw == "CRITICAL":
        return logging.CRITICAL
    return logging.INFO


def setup_logging(
    level: Optional[Union[str, int]] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a RichHandler to the ``snaptest`` logger (once per process)."""
    global _initialized

    root = logging.getLogger("snaptest")
    root.setLevel(resolve_level(level))

    if _initialized:
        return root

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    _initialized = True
    return root
