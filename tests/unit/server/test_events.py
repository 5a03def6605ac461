"""Tests for the download-progress SSE stream."""

import asyncio
import json
from unittest.mock import patch

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from convertsave.events import DOWNLOAD_PROGRESS, ProgressStatus
from convertsave.server.app import create_app
from convertsave.server.events import MAX_SSE_CONNECTIONS, sse_connections_key


@pytest_asyncio.fixture
async def app(command_context):
    return create_app(command_context)


async def _read_event(resp) -> tuple[str, dict]:
    lines = []
    while True:
        line = (await resp.content.readline()).decode("utf-8")
        if line == "\n":
            break
        lines.append(line.rstrip("\n"))
    fields = dict(line.split(": ", 1) for line in lines)
    return fields["event"], json.loads(fields["data"])


@pytest.mark.asyncio
async def test_streams_progress_events(app, command_context):
    bus = command_context.events
    with patch("convertsave.server.events.SSE_HEARTBEAT_INTERVAL", 0.05):
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/events/download-progress")
            assert resp.status == 200
            assert resp.headers["Content-Type"] == "text/event-stream"

            for _ in range(100):
                if bus.subscriber_count(DOWNLOAD_PROGRESS):
                    break
                await asyncio.sleep(0.01)

            emit = bus.download_emitter()
            emit(ProgressStatus.DOWNLOADING, "Downloading FFmpeg...")
            emit(ProgressStatus.COMPLETE, "FFmpeg installed")

            received = []
            while len(received) < 2:
                event, data = await asyncio.wait_for(_read_event(resp), 5)
                if event == DOWNLOAD_PROGRESS:
                    received.append(data)
            resp.close()

    assert received == [
        {"status": "downloading", "message": "Downloading FFmpeg..."},
        {"status": "complete", "message": "FFmpeg installed"},
    ]


@pytest.mark.asyncio
async def test_heartbeat(app):
    with patch("convertsave.server.events.SSE_HEARTBEAT_INTERVAL", 0.01):
        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/api/events/download-progress")
            event, data = await asyncio.wait_for(_read_event(resp), 5)
            resp.close()

    assert (event, data) == ("heartbeat", {})


@pytest.mark.asyncio
async def test_too_many_connections(app):
    app[sse_connections_key]["count"] = MAX_SSE_CONNECTIONS
    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/api/events/download-progress")
        assert resp.status == 503
        assert resp.headers["Retry-After"] == "10"
        assert (await resp.json())["code"] == "SERVICE_UNAVAILABLE"


def test_encode_sse_event():
    from convertsave.server.events import encode_sse_event

    frame = encode_sse_event("download-progress", {"status": "checking", "message": "Checking..."})
    assert frame == (
        b'event: download-progress\ndata: {"status": "checking", "message": "Checking..."}\n\n'
    )
