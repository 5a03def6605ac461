"""License data types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PlanType(str, Enum):
    """Subscription plan of a license."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    LIFETIME = "lifetime"


class LicenseErrorKind(str, Enum):
    """Why a license is not usable."""

    REQUIRES_ACTIVATION = "requires-activation"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"
    WRONG_DEVICE = "wrong-device"
    NETWORK = "network"
    INVALID = "invalid"


class LicenseRecord(BaseModel):
    """Decrypted contents of a license blob.

    Serialized with the camelCase keys used by the license server.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    product_key: str = Field(alias="productKey")
    mac_address: str = Field(alias="macAddress")
    plan_type: PlanType = Field(alias="planType")
    subscription_end_date: datetime | None = Field(default=None, alias="subscriptionEndDate")
    issued_at: datetime = Field(alias="issuedAt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> LicenseRecord:
        return cls.model_validate_json(data)


@dataclass(frozen=True)
class LicenseStatus:
    """License state as shown to the user.

    Attributes:
        is_valid: The app may be used.
        is_activated: A license exists for this device (valid or not).
        plan_type: Plan of the license, if any.
        days_remaining: Whole days until subscription end; None for
            lifetime plans and when there is no license.
        in_grace_period: Subscription ended less than the grace period ago.
        error: User-facing reason when not valid.
        error_kind: Machine-readable reason when not valid.
        requires_activation: No license exists; the user must activate.
    """

    is_valid: bool
    is_activated: bool
    plan_type: PlanType | None = None
    days_remaining: int | None = None
    in_grace_period: bool = False
    error: str | None = None
    error_kind: LicenseErrorKind | None = None
    requires_activation: bool = False

    @classmethod
    def needs_activation(cls, error: str | None = None) -> LicenseStatus:
        return cls(
            is_valid=False,
            is_activated=False,
            error=error,
            error_kind=LicenseErrorKind.REQUIRES_ACTIVATION,
            requires_activation=True,
        )

    @classmethod
    def failed(
        cls,
        kind: LicenseErrorKind,
        error: str,
        plan_type: PlanType | None = None,
        days_remaining: int | None = None,
        is_activated: bool = True,
    ) -> LicenseStatus:
        return cls(
            is_valid=False,
            is_activated=is_activated,
            plan_type=plan_type,
            days_remaining=days_remaining,
            error=error,
            error_kind=kind,
        )

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "isActivated": self.is_activated,
            "planType": self.plan_type.value if self.plan_type else None,
            "daysRemaining": self.days_remaining,
            "inGracePeriod": self.in_grace_period,
            "error": self.error,
            "errorKind": self.error_kind.value if self.error_kind else None,
            "requiresActivation": self.requires_activation,
        }
