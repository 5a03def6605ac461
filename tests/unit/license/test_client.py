"""Tests for the license API client."""

import json

import httpx
import pytest

from convertsave.exceptions import LicenseError
from convertsave.license.client import LicenseApiClient
from convertsave.license.models import LicenseErrorKind

BASE_URL = "https://licenses.test/api/license"
MAC = "AA:BB:CC:DD:EE:FF"


def _client(handler) -> LicenseApiClient:
    return LicenseApiClient(BASE_URL, transport=httpx.MockTransport(handler))


class TestLookup:
    """Tests for lookup."""

    @pytest.mark.asyncio
    async def test_found(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"license": "blob"})

        async with _client(handler) as client:
            assert await client.lookup(MAC) == "blob"

        assert seen == {"path": "/api/license/lookup", "body": {"macAddress": MAC}}

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with _client(lambda r: httpx.Response(404, json={"error": "none"})) as client:
            assert await client.lookup(MAC) is None

    @pytest.mark.asyncio
    async def test_empty_license(self):
        async with _client(lambda r: httpx.Response(200, json={})) as client:
            assert await client.lookup(MAC) is None

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(LicenseError) as exc_info:
                await client.lookup(MAC)
        assert exc_info.value.kind == LicenseErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler) as client:
            with pytest.raises(LicenseError, match="timed out"):
                await client.lookup(MAC)


class TestValidate:
    """Tests for validate."""

    @pytest.mark.asyncio
    async def test_sends_device_name(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"license": "issued"})

        async with _client(handler) as client:
            assert await client.validate("KEY-1", MAC, "studio-mac") == "issued"

        assert bodies == [{"productKey": "KEY-1", "macAddress": MAC, "deviceName": "studio-mac"}]

    @pytest.mark.asyncio
    async def test_rejected_key(self):
        handler = lambda r: httpx.Response(400, json={"error": "Invalid product key"})  # noqa: E731
        async with _client(handler) as client:
            with pytest.raises(LicenseError, match="Invalid product key") as exc_info:
                await client.validate("BAD", MAC)
        assert exc_info.value.kind == LicenseErrorKind.INVALID

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with _client(lambda r: httpx.Response(503, text="down")) as client:
            with pytest.raises(LicenseError, match="HTTP 503") as exc_info:
                await client.validate("KEY", MAC)
        assert exc_info.value.kind == LicenseErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_missing_license(self):
        async with _client(lambda r: httpx.Response(200, json={"message": "ok"})) as client:
            with pytest.raises(LicenseError, match="did not include a license"):
                await client.validate("KEY", MAC)


class TestRefresh:
    """Tests for refresh and deactivate."""

    @pytest.mark.asyncio
    async def test_new_blob(self):
        async with _client(lambda r: httpx.Response(200, json={"license": "new"})) as client:
            assert await client.refresh("old", MAC) == "new"

    @pytest.mark.asyncio
    async def test_deactivated(self):
        handler = lambda r: httpx.Response(200, json={"isActive": False})  # noqa: E731
        async with _client(handler) as client:
            with pytest.raises(LicenseError) as exc_info:
                await client.refresh("old", MAC)
        assert exc_info.value.kind == LicenseErrorKind.DEACTIVATED

    @pytest.mark.asyncio
    async def test_deactivate(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            await client.deactivate("blob", MAC)
        assert paths == ["/api/license/deactivate"]
