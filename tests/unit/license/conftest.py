"""Shared fixtures for license tests."""

from datetime import datetime, timedelta, timezone

import pytest

from convertsave.license.crypto import derive_key
from convertsave.license.models import LicenseRecord, PlanType

DEVICE_MAC = "AA:BB:CC:DD:EE:FF"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def license_key() -> bytes:
    return derive_key("test-secret")


@pytest.fixture
def make_record():
    def _make(
        plan: PlanType = PlanType.MONTHLY,
        days_left: float | None = 20,
        mac: str = DEVICE_MAC,
        key: str = "CS-1234-5678",
    ) -> LicenseRecord:
        end = None if days_left is None else NOW + timedelta(days=days_left)
        return LicenseRecord(
            product_key=key,
            mac_address=mac,
            plan_type=plan,
            subscription_end_date=end,
            issued_at=NOW - timedelta(days=10),
        )

    return _make


@pytest.fixture
def now() -> datetime:
    return NOW
