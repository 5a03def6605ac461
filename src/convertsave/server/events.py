"""Server-Sent Events stream for download progress.

Endpoint:
    GET /api/events/download-progress - one ``download-progress`` event per
    DownloadProgress record, in publish order, plus periodic heartbeats.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from aiohttp import web

from convertsave.events import DOWNLOAD_PROGRESS, EventBus
from convertsave.server.errors import SERVICE_UNAVAILABLE, api_error

logger = logging.getLogger(__name__)

SSE_HEARTBEAT_INTERVAL = 15  # seconds
SSE_WRITE_TIMEOUT = 5.0  # seconds
MAX_SSE_CONNECTIONS = 20

event_bus_key = web.AppKey("event_bus", EventBus)
sse_connections_key = web.AppKey("sse_connections", dict)


def encode_sse_event(event_type: str, data: dict[str, Any]) -> bytes:
    """Encode one SSE frame; the JSON payload stays on a single data line."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n".encode("utf-8")


async def write_sse_event(
    response: web.StreamResponse,
    event_type: str,
    data: dict[str, Any],
    timeout: float = SSE_WRITE_TIMEOUT,
) -> bool:
    """Send one event; False means the client is gone or too slow."""
    try:
        await asyncio.wait_for(response.write(encode_sse_event(event_type, data)), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.warning("Dropping slow progress stream client")
        return False
    except (ConnectionResetError, ConnectionAbortedError, BrokenPipeError):
        logger.debug("Progress stream client went away")
        return False


async def sse_download_progress_handler(request: web.Request) -> web.StreamResponse:
    """Handle GET /api/events/download-progress."""
    connections = request.app[sse_connections_key]
    if connections["count"] >= MAX_SSE_CONNECTIONS:
        resp = api_error(
            "Service temporarily unavailable - too many connections",
            code=SERVICE_UNAVAILABLE,
            status=503,
        )
        resp.headers["Retry-After"] = "10"
        return resp

    response = web.StreamResponse(
        status=200,
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
    await response.prepare(request)

    bus = request.app[event_bus_key]
    subscription = bus.subscribe(DOWNLOAD_PROGRESS)
    connections["count"] += 1
    logger.debug("SSE download-progress client connected (total: %d)", connections["count"])
    try:
        while True:
            try:
                event = await asyncio.wait_for(subscription.get(), SSE_HEARTBEAT_INTERVAL)
            except asyncio.TimeoutError:
                if not await write_sse_event(response, "heartbeat", {}):
                    break
                continue
            if not await write_sse_event(response, DOWNLOAD_PROGRESS, event):
                break
    finally:
        subscription.close()
        connections["count"] -= 1
        logger.debug("SSE download-progress client disconnected")
    return response
