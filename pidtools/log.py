"""Logging setup for the pidtools commands."""
from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = "WARNING"


def default_log_level() -> str:
    return os.environ.get("PIDTOOLS_LOG_LEVEL") or DEFAULT_LEVEL


def resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.strip().upper())
    # getLevelName returns "Level X" strings for unknown names
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(level_name: str | None = None) -> int:
    """Send all log records to stderr through rich. Returns the level used."""
    level = resolve_level(level_name or default_log_level())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=False,
        rich_tracebacks=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)

    logging.getLogger("pidtools").debug("logging configured at %s", logging.getLevelName(level))
    return level
