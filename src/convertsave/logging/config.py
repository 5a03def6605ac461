"""Root logger setup from a LoggingConfig."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from convertsave.logging.context import TaskContextFilter
from convertsave.logging.handlers import JSONFormatter, TextFormatter

if TYPE_CHECKING:
    from convertsave.config.models import LoggingConfig

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# HTTP client and access logs stay at WARNING or above
_QUIET_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return TextFormatter()


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Rotating handler for config.file, or None if it cannot be opened."""
    if not config.file:
        return None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to config.

    Logs go to the file, to stderr, or both. Stderr is always used when
    the file cannot be opened.
    """
    level = LEVELS.get(config.level.casefold(), logging.INFO)
    handlers: list[logging.Handler] = []

    file_handler = _open_log_file(config)
    if file_handler is not None:
        handlers.append(file_handler)
    if config.include_stderr or file_handler is None:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _formatter(config)
    context_filter = TaskContextFilter()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
