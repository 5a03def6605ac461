"""HTTP client for the license server.

Endpoints (all POST, JSON bodies, camelCase keys):

- ``/lookup``      {macAddress}                        -> {license?}
- ``/validate``    {productKey, macAddress, deviceName?} -> {license}
- ``/refresh``     {license, macAddress}               -> {license?, isActive?}
- ``/deactivate``  {license, macAddress}               -> {}
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from convertsave.config.models import DEFAULT_API_URL
from convertsave.exceptions import LicenseError
from convertsave.license.models import LicenseErrorKind

logger = logging.getLogger(__name__)

API_TIMEOUT = 30.0


class LicenseResponse(BaseModel):
    """Body returned by the license server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    license: str | None = None
    is_active: bool | None = Field(default=None, alias="isActive")
    error: str | None = None
    message: str | None = None


class LicenseApiClient:
    """Async client for the license API.

    Use as an async context manager, or call close() when done.

    Args:
        base_url: API root (e.g., https://convertsave.com/api/license).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> LicenseApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        client = self._get_client()
        try:
            return await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise LicenseError(
                "License server timed out. Check your internet connection.",
                LicenseErrorKind.NETWORK,
            ) from e
        except httpx.HTTPError as e:
            raise LicenseError(
                f"Cannot reach the license server: {e}", LicenseErrorKind.NETWORK
            ) from e

    @staticmethod
    def _parse(response: httpx.Response) -> LicenseResponse:
        try:
            return LicenseResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return LicenseResponse()

    def _raise_for_error(self, response: httpx.Response, action: str) -> LicenseResponse:
        body = self._parse(response)
        if response.is_success:
            return body
        detail = body.error or body.message or f"HTTP {response.status_code}"
        logger.warning("License %s failed: %s", action, detail)
        if body.is_active is False:
            raise LicenseError(detail, LicenseErrorKind.DEACTIVATED)
        if response.status_code >= 500:
            raise LicenseError(f"License server error: {detail}", LicenseErrorKind.NETWORK)
        raise LicenseError(detail, LicenseErrorKind.INVALID)

    async def lookup(self, mac_address: str) -> str | None:
        """Find an existing license for this device.

        Returns:
            The license blob, or None if the device has no license.
        """
        response = await self._post("/lookup", {"macAddress": mac_address})
        if response.status_code == 404:
            return None
        body = self._raise_for_error(response, "lookup")
        return body.license or None

    async def validate(
        self, product_key: str, mac_address: str, device_name: str | None = None
    ) -> str:
        """Activate a product key on this device.

        Returns:
            The license blob issued for this device.
        """
        payload: dict[str, Any] = {"productKey": product_key, "macAddress": mac_address}
        if device_name:
            payload["deviceName"] = device_name
        body = self._raise_for_error(await self._post("/validate", payload), "activation")
        if not body.license:
            raise LicenseError(
                body.error or "Activation response did not include a license",
                LicenseErrorKind.INVALID,
            )
        return body.license

    async def refresh(self, license_blob: str, mac_address: str) -> str | None:
        """Ask for a renewed license blob.

        Returns:
            The new blob, or None if the server had nothing newer.

        Raises:
            LicenseError: With kind DEACTIVATED if the server reports the
                license as no longer active.
        """
        payload = {"license": license_blob, "macAddress": mac_address}
        body = self._raise_for_error(await self._post("/refresh", payload), "refresh")
        if body.is_active is False:
            raise LicenseError(
                body.error or "License was deactivated", LicenseErrorKind.DEACTIVATED
            )
        return body.license or None

    async def deactivate(self, license_blob: str, mac_address: str) -> None:
        payload = {"license": license_blob, "macAddress": mac_address}
        self._raise_for_error(await self._post("/deactivate", payload), "deactivation")
