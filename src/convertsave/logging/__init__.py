"""Logging setup for ConvertSave."""

from convertsave.logging.config import configure_logging
from convertsave.logging.context import (
    TaskContextFilter,
    get_task_context,
    new_task_id,
    task_context,
)
from convertsave.logging.handlers import JSONFormatter, TextFormatter

__all__ = [
    "JSONFormatter",
    "TaskContextFilter",
    "TextFormatter",
    "configure_logging",
    "get_task_context",
    "new_task_id",
    "task_context",
]
