"""Task context for structured logging.

Each user-visible command runs as its own asyncio task. The command name and
a short task id are carried in contextvars, so every log record emitted while
the command runs can be attributed to it even when several commands are in
flight at once.
"""

from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_command: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "command", default=None
)
_task_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "task_id", default=None
)


def new_task_id() -> str:
    """Return a short random task identifier."""
    return uuid.uuid4().hex[:8]


@contextmanager
def task_context(
    command: str, task_id: str | None = None
) -> Generator[str, None, None]:
    """Context manager that tags log records with the running command.

    Args:
        command: Command name (e.g., "convert_file").
        task_id: Identifier for this invocation; generated when omitted.

    Yields:
        The task id in effect.

    Example:
        with task_context("download_tool"):
            logger.info("Downloading")  # record carries command/task_id
    """
    tid = task_id or new_task_id()
    command_token = _command.set(command)
    task_token = _task_id.set(tid)
    try:
        yield tid
    finally:
        _task_id.reset(task_token)
        _command.reset(command_token)


def get_task_context() -> tuple[str | None, str | None]:
    """Get current task context as (command, task_id)."""
    return _command.get(), _task_id.get()


class TaskContextFilter(logging.Filter):
    """Logging filter that injects task context into log records.

    Adds ``command`` and ``task_id`` attributes for JSON output and a
    compact ``task_tag`` like ``[convert_file:1a2b3c4d] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        command, task_id = get_task_context()
        record.command_name = command
        record.task_id = task_id
        if command:
            record.task_tag = f"[{command}:{task_id}] " if task_id else f"[{command}] "
        else:
            record.task_tag = ""
        return True
