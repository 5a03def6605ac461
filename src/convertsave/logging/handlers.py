"""Log formatters: one JSON object per line, or a plain text line."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

# Set by TaskContextFilter and emitted under fixed keys
_TASK_ATTRS: frozenset[str] = frozenset({"command_name", "task_id", "task_tag"})

TEXT_FORMAT = "%(asctime)s - %(task_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


class TextFormatter(logging.Formatter):
    """Human-readable lines; inside a command the tag is ``[name:id] ``."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "task_tag"):
            record.task_tag = ""
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """Structured lines for log shipping.

    Keys: ``timestamp`` (UTC ISO-8601), ``level``, ``message``, ``logger``
    (omitted for root), ``context`` (extra= fields plus the task command and
    id, omitted when empty) and ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        context = _extra_fields(record)
        # Fixed keys, so extra={"task_id": ...} cannot shadow them
        command = getattr(record, "command_name", None)
        if command:
            context["task_command"] = command
        task_id = getattr(record, "task_id", None)
        if task_id:
            context["task_id"] = task_id
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS
        and key not in _TASK_ATTRS
        and not key.startswith("_")
    }
