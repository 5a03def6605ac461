"""JSON error bodies for the bridge.

Every failure is ``{"error": <message>, "code": <CODE>}``, optionally with a
``details`` member. The desktop shell shows ``error`` verbatim and branches
on ``code``.
"""

from __future__ import annotations

from typing import Any

from aiohttp import web

from convertsave.exceptions import (
    ConversionError,
    FilesystemError,
    LicenseError,
    ProvisionError,
    ToolNotFoundError,
    UnsupportedConversionError,
)

# Request problems (4xx)
INVALID_REQUEST = "INVALID_REQUEST"
INVALID_JSON = "INVALID_JSON"
INVALID_PARAMETER = "INVALID_PARAMETER"
UNKNOWN_COMMAND = "UNKNOWN_COMMAND"
COMMAND_FAILED = "COMMAND_FAILED"

# Server problems (5xx)
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"

_FAILURE_KINDS: tuple[tuple[type[BaseException], str], ...] = (
    (UnsupportedConversionError, "unsupported-conversion"),
    (ToolNotFoundError, "tool-not-found"),
    (ConversionError, "conversion-failed"),
    (ProvisionError, "download-failed"),
    (LicenseError, "license"),
    (FilesystemError, "filesystem"),
)


def api_error(
    message: str,
    *,
    code: str,
    status: int = 400,
    details: Any = None,
) -> web.Response:
    """Build an error response.

    Args:
        message: Text for the user.
        code: One of the codes above.
        status: HTTP status.
        details: Extra context, omitted from the body when None.
    """
    payload: dict[str, Any] = {"error": message, "code": code}
    if details is not None:
        payload["details"] = details
    return web.json_response(payload, status=status)


def failure_kind(error: BaseException) -> str:
    """Category of a failed command, taken from the error that caused it."""
    cause = error.__cause__ or error
    for error_type, kind in _FAILURE_KINDS:
        if isinstance(cause, error_type):
            return kind
    return "other"


def command_failure(error: BaseException) -> web.Response:
    """422 response for a command that ran and failed."""
    return api_error(
        str(error),
        code=COMMAND_FAILED,
        status=422,
        details={"kind": failure_kind(error)},
    )
