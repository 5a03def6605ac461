"""Tests for the HTTP bridge routes.

- GET  /health
- GET  /api/commands
- POST /api/invoke/{command}
"""

from unittest.mock import patch

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from convertsave import __version__
from convertsave.commands import COMMANDS
from convertsave.license.models import LicenseStatus
from convertsave.server.app import create_app


@pytest_asyncio.fixture
async def client(command_context):
    """Test client for an app bound to the mocked command context."""
    app = create_app(command_context)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status == 200
    data = await resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert data["uptime_seconds"] >= 0


@pytest.mark.asyncio
async def test_list_commands(client):
    resp = await client.get("/api/commands")
    data = await resp.json()
    assert data["commands"] == sorted(COMMANDS)
    assert "convert_file" in data["commands"]


class TestInvoke:
    """Tests for POST /api/invoke/{command}."""

    @pytest.mark.asyncio
    async def test_success(self, client):
        resp = await client.post(
            "/api/invoke/get_available_formats", json={"input_extension": "mp4"}
        )
        assert resp.status == 200
        result = (await resp.json())["result"]
        assert "mp3" in [option["format"] for option in result]

    @pytest.mark.asyncio
    async def test_no_body(self, client, command_context):
        command_context.license_gate.check_status.return_value = LicenseStatus.needs_activation()
        resp = await client.post("/api/invoke/check_license_status")
        assert resp.status == 200
        result = (await resp.json())["result"]
        assert result["requiresActivation"] is True

    @pytest.mark.asyncio
    async def test_unknown_command(self, client):
        resp = await client.post("/api/invoke/format_disk", json={})
        assert resp.status == 404
        assert (await resp.json())["code"] == "UNKNOWN_COMMAND"

    @pytest.mark.asyncio
    async def test_command_failure(self, client, temp_dir):
        resp = await client.post(
            "/api/invoke/convert_file",
            json={"input_path": str(temp_dir / "missing.mp4"), "output_format": "mp3"},
        )
        assert resp.status == 422
        data = await resp.json()
        assert data["code"] == "COMMAND_FAILED"
        assert data["error"].startswith("Input file not found")
        assert data["details"] == {"kind": "filesystem"}

    @pytest.mark.asyncio
    async def test_bad_parameters(self, client):
        resp = await client.post("/api/invoke/get_file_info", json={"file": "x"})
        assert resp.status == 400
        data = await resp.json()
        assert data["code"] == "INVALID_PARAMETER"
        assert "details" in data

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        resp = await client.post(
            "/api/invoke/get_file_info",
            data="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_JSON"

    @pytest.mark.asyncio
    async def test_non_object_body(self, client):
        resp = await client.post("/api/invoke/get_file_info", json=["a"])
        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, client, command_context):
        command_context.license_gate.device_id.side_effect = RuntimeError("boom")
        with patch("convertsave.server.app.logger") as logger:
            resp = await client.post("/api/invoke/get_device_id")
        assert resp.status == 500
        assert (await resp.json())["code"] == "INTERNAL_ERROR"
        logger.exception.assert_called_once()


@pytest.mark.asyncio
async def test_missing_tool_failure_kind(client, temp_dir):
    src = temp_dir / "clip.mp4"
    src.write_bytes(b"data")
    resp = await client.post(
        "/api/invoke/convert_file",
        json={"input_path": str(src), "output_format": "mp3", "output_directory": str(temp_dir)},
    )
    assert resp.status == 422
    data = await resp.json()
    assert data["details"] == {"kind": "tool-not-found"}
    assert data["error"].startswith("FFmpeg is not installed")
