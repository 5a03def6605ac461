"""HTTP bridge between the desktop shell and the command layer.

Routes:
    GET  /health                          - liveness and version
    GET  /api/commands                    - names of the invokable commands
    POST /api/invoke/{command}            - run a command with a JSON body of
                                            keyword arguments
    GET  /api/events/download-progress    - SSE stream of progress events
"""

from __future__ import annotations

import inspect
import json
import logging
import time
from dataclasses import asdict, dataclass

from aiohttp import web

from convertsave import __version__
from convertsave.commands import COMMANDS, CommandContext, CommandError
from convertsave.core.json_utils import to_jsonable
from convertsave.server.errors import (
    INTERNAL_ERROR,
    INVALID_JSON,
    INVALID_PARAMETER,
    INVALID_REQUEST,
    UNKNOWN_COMMAND,
    api_error,
    command_failure,
)
from convertsave.server.events import (
    event_bus_key,
    sse_connections_key,
    sse_download_progress_handler,
)

logger = logging.getLogger(__name__)

command_context_key = web.AppKey("command_context", CommandContext)
start_time_key = web.AppKey("start_time", float)


@dataclass
class HealthStatus:
    """Health check response payload."""

    status: str
    version: str
    uptime_seconds: float

    def to_dict(self) -> dict:
        return asdict(self)


async def health_handler(request: web.Request) -> web.Response:
    """Handle GET /health."""
    uptime = time.monotonic() - request.app[start_time_key]
    health = HealthStatus(
        status="healthy",
        version=__version__,
        uptime_seconds=round(uptime, 2),
    )
    return web.json_response(health.to_dict())


async def list_commands_handler(request: web.Request) -> web.Response:
    """Handle GET /api/commands."""
    return web.json_response({"commands": sorted(COMMANDS)})


async def invoke_handler(request: web.Request) -> web.Response:
    """Handle POST /api/invoke/{command}.

    The JSON body holds the command's keyword arguments. Success returns
    ``{"result": ...}``; a failed command returns 422 with its message.
    """
    name = request.match_info["command"]
    func = COMMANDS.get(name)
    if func is None:
        return api_error(
            f"Unknown command: {name}", code=UNKNOWN_COMMAND, status=404
        )

    if request.can_read_body:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return api_error("Request body is not valid JSON", code=INVALID_JSON)
    else:
        body = {}
    if body is None:
        body = {}
    if not isinstance(body, dict):
        return api_error(
            "Request body must be a JSON object", code=INVALID_REQUEST
        )

    ctx = request.app[command_context_key]
    try:
        inspect.signature(func).bind(ctx, **body)
    except TypeError as e:
        return api_error(
            f"Invalid arguments for {name}", code=INVALID_PARAMETER, details=str(e)
        )

    try:
        result = await func(ctx, **body)
    except CommandError as e:
        return command_failure(e)
    except Exception:
        logger.exception("Unhandled error in command %s", name)
        return api_error("Internal error", code=INTERNAL_ERROR, status=500)

    return web.json_response({"result": to_jsonable(result)})


def create_app(command_context: CommandContext | None = None) -> web.Application:
    """Create the bridge application.

    Args:
        command_context: Services for the commands. Built from settings
            and environment when omitted.

    Returns:
        Configured aiohttp Application.
    """
    ctx = command_context or CommandContext.create()

    app = web.Application()
    app[command_context_key] = ctx
    app[event_bus_key] = ctx.events
    app[sse_connections_key] = {"count": 0}
    app[start_time_key] = time.monotonic()

    app.router.add_get("/health", health_handler)
    app.router.add_get("/api/commands", list_commands_handler)
    app.router.add_post("/api/invoke/{command}", invoke_handler)
    app.router.add_get(
        "/api/events/download-progress", sse_download_progress_handler
    )
    return app
