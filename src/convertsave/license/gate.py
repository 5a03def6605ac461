"""License lifecycle: startup check, activation, deactivation.

Startup check:

1. determine the device MAC
2. local blob present: decrypt and evaluate; refresh from the server when
   expiry is within the refresh window or the license is in grace
3. no local blob: look the device up on the server and persist any hit
4. still nothing: the user must activate

Refresh is best effort. When the server cannot be reached the status
computed from the local blob stands.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from convertsave.exceptions import LicenseError
from convertsave.license import crypto
from convertsave.license.client import LicenseApiClient
from convertsave.license.device import get_device_name, get_mac_address
from convertsave.license.models import LicenseErrorKind, LicenseRecord, LicenseStatus
from convertsave.license.storage import LicenseStore
from convertsave.license.validation import evaluate, should_refresh, utc_now

logger = logging.getLogger(__name__)


class LicenseGate:
    """Authorizes use of the app on this device.

    Args:
        store: Location of license.dat.
        client_factory: Creates a LicenseApiClient per operation.
        key: AES key; derived from LICENSE_ENCRYPTION_KEY when omitted.
        mac_provider: Returns this device's MAC address.
        device_name_provider: Returns a human-readable device name.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: LicenseStore,
        client_factory: Callable[[], LicenseApiClient] = LicenseApiClient,
        key: bytes | None = None,
        mac_provider: Callable[[], str] = get_mac_address,
        device_name_provider: Callable[[], str] = get_device_name,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self._client_factory = client_factory
        self._key = key
        self._mac_provider = mac_provider
        self._device_name_provider = device_name_provider
        self._clock = clock

    @property
    def key(self) -> bytes:
        if self._key is None:
            self._key = crypto.derive_key(crypto.license_secret())
        return self._key

    def device_id(self) -> str:
        """MAC address identifying this device.

        Raises:
            LicenseError: If it cannot be determined.
        """
        return self._mac_provider()

    def _decrypt(self, blob: str) -> LicenseRecord:
        return crypto.decrypt_license(blob, self.key)

    def current_record(self) -> LicenseRecord | None:
        blob = self.store.read()
        if blob is None:
            return None
        try:
            return self._decrypt(blob)
        except LicenseError as e:
            logger.warning("Stored license cannot be read: %s", e)
            return None

    def current_product_key(self) -> str | None:
        record = self.current_record()
        return record.product_key if record else None

    async def check_status(self) -> LicenseStatus:
        """Run the startup check and return the resulting status."""
        try:
            mac = self.device_id()
        except LicenseError as e:
            return LicenseStatus.failed(LicenseErrorKind.INVALID, str(e), is_activated=False)

        blob = self.store.read()
        if blob is not None:
            return await self._status_from_blob(blob, mac)

        try:
            async with self._client_factory() as client:
                blob = await client.lookup(mac)
        except LicenseError as e:
            logger.warning("License lookup failed: %s", e)
            if e.kind == LicenseErrorKind.NETWORK:
                return LicenseStatus(
                    is_valid=False,
                    is_activated=False,
                    error=str(e),
                    error_kind=LicenseErrorKind.NETWORK,
                    requires_activation=True,
                )
            return LicenseStatus.needs_activation()

        if blob is None:
            logger.info("No license found for this device")
            return LicenseStatus.needs_activation()

        try:
            record = self._decrypt(blob)
        except LicenseError as e:
            return LicenseStatus.failed(LicenseErrorKind.INVALID, str(e), is_activated=False)
        status = evaluate(record, mac, self._clock())
        if status.error_kind == LicenseErrorKind.WRONG_DEVICE:
            logger.warning("Server returned a license bound to another device")
            return status
        self.store.write(blob)
        logger.info("Restored license for this device from the server")
        return status

    async def _status_from_blob(self, blob: str, mac: str) -> LicenseStatus:
        try:
            record = self._decrypt(blob)
        except LicenseError as e:
            return LicenseStatus.failed(LicenseErrorKind.INVALID, str(e))

        status = evaluate(record, mac, self._clock())
        if not should_refresh(status):
            return status

        logger.info(
            "License ends in %s day(s), refreshing", status.days_remaining
        )
        try:
            async with self._client_factory() as client:
                new_blob = await client.refresh(blob, mac)
        except LicenseError as e:
            if e.kind == LicenseErrorKind.DEACTIVATED:
                logger.warning("License was deactivated on the server")
                self.store.delete()
                return LicenseStatus(
                    is_valid=False,
                    is_activated=False,
                    plan_type=record.plan_type,
                    error=str(e),
                    error_kind=LicenseErrorKind.DEACTIVATED,
                    requires_activation=True,
                )
            logger.warning("License refresh failed, keeping local status: %s", e)
            return status

        if new_blob is None or new_blob == blob:
            return status
        try:
            new_record = self._decrypt(new_blob)
        except LicenseError as e:
            logger.warning("Refreshed license cannot be read, keeping local status: %s", e)
            return status
        self.store.write(new_blob)
        return evaluate(new_record, mac, self._clock())

    async def activate(self, product_key: str) -> LicenseStatus:
        """Activate a product key on this device and persist the license.

        Raises:
            LicenseError: If the server rejects the key, cannot be reached,
                or issues a license for another device.
        """
        product_key = product_key.strip()
        if not product_key:
            raise LicenseError("Product key is empty", LicenseErrorKind.INVALID)
        mac = self.device_id()
        async with self._client_factory() as client:
            blob = await client.validate(product_key, mac, self._device_name_provider())

        record = self._decrypt(blob)
        status = evaluate(record, mac, self._clock())
        if status.error_kind == LicenseErrorKind.WRONG_DEVICE:
            raise LicenseError(
                "The issued license is bound to a different device",
                LicenseErrorKind.WRONG_DEVICE,
            )
        self.store.write(blob)
        logger.info("License activated (%s plan)", record.plan_type.value)
        return status

    async def deactivate(self) -> LicenseStatus:
        """Release this device's license on the server and delete it locally.

        Raises:
            LicenseError: If the server refuses or cannot be reached.
        """
        blob = self.store.read()
        if blob is None:
            return LicenseStatus.needs_activation()
        mac = self.device_id()
        async with self._client_factory() as client:
            await client.deactivate(blob, mac)
        self.store.delete()
        logger.info("License deactivated")
        return LicenseStatus.needs_activation()

    async def change_product_key(self, product_key: str) -> LicenseStatus:
        """Deactivate the current license, then activate a new key."""
        if self.store.exists():
            await self.deactivate()
        return await self.activate(product_key)
