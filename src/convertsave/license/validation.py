"""Offline license checks: device binding and subscription dates.

All times are compared in UTC. Naive timestamps are taken to be UTC.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from convertsave.license.device import macs_equal
from convertsave.license.models import (
    LicenseErrorKind,
    LicenseRecord,
    LicenseStatus,
    PlanType,
)

GRACE_PERIOD_DAYS = 2
REFRESH_WINDOW_DAYS = 7

_SECONDS_PER_DAY = 86_400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days from now until end, rounded toward negative infinity."""
    seconds = (as_utc(end) - as_utc(now)).total_seconds()
    return math.floor(seconds / _SECONDS_PER_DAY)


def evaluate(
    record: LicenseRecord, current_mac: str, now: datetime | None = None
) -> LicenseStatus:
    """Validate a decrypted license against this device and the clock.

    Args:
        record: Decrypted license.
        current_mac: MAC address of this device.
        now: Current time (defaults to utc_now()).

    Returns:
        LicenseStatus; lifetime plans never carry days_remaining.
    """
    now = now or utc_now()
    plan = record.plan_type

    if not macs_equal(record.mac_address, current_mac):
        return LicenseStatus.failed(
            LicenseErrorKind.WRONG_DEVICE,
            "License not valid for this device",
            plan_type=plan,
        )

    if plan is PlanType.LIFETIME or record.subscription_end_date is None:
        return LicenseStatus(is_valid=True, is_activated=True, plan_type=plan)

    days = days_until(record.subscription_end_date, now)
    if days < -GRACE_PERIOD_DAYS:
        return LicenseStatus.failed(
            LicenseErrorKind.EXPIRED,
            "Subscription has expired",
            plan_type=plan,
            days_remaining=days,
        )
    return LicenseStatus(
        is_valid=True,
        is_activated=True,
        plan_type=plan,
        days_remaining=days,
        in_grace_period=days < 0,
    )


def should_refresh(status: LicenseStatus) -> bool:
    """Refresh when expiry is near or the license is in its grace period."""
    return (
        status.is_valid
        and status.days_remaining is not None
        and status.days_remaining <= REFRESH_WINDOW_DAYS
    )
