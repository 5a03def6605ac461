"""Device-bound license handling."""

from convertsave.license.gate import LicenseGate
from convertsave.license.models import (
    LicenseErrorKind,
    LicenseRecord,
    LicenseStatus,
    PlanType,
)
from convertsave.license.storage import LicenseStore

__all__ = [
    "LicenseErrorKind",
    "LicenseGate",
    "LicenseRecord",
    "LicenseStatus",
    "LicenseStore",
    "PlanType",
]
