from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import ModuleType

from .constants import DEFAULT_HALF_DAY_THRESHOLD_HOURS, DEFAULT_MAX_LOCATION_ACCURACY_METERS
from .enums import LeavePunchPolicy, LedgerStatus


@dataclass(frozen=True)
class LedgerPolicy:
    """Tenant-independent policy knobs for the ledger.

    These are the values the data model alone does not pin down, so they are
    read from settings instead of being hard-coded.
    """

    require_location: bool = False
    max_accuracy_meters: float = DEFAULT_MAX_LOCATION_ACCURACY_METERS
    half_day_threshold_hours: Decimal = DEFAULT_HALF_DAY_THRESHOLD_HOURS
    missing_clock_out_status: LedgerStatus = LedgerStatus.HALF_DAY
    leave_punch_policy: LeavePunchPolicy = LeavePunchPolicy.FLAG

    def __post_init__(self):
        if self.max_accuracy_meters <= 0:
            raise ValueError("max_accuracy_meters must be positive")
        if self.half_day_threshold_hours < 0:
            raise ValueError("half_day_threshold_hours must not be negative")
        if self.missing_clock_out_status not in (LedgerStatus.HALF_DAY, LedgerStatus.ABSENT):
            raise ValueError("missing_clock_out_status must be half_day or absent")

    @classmethod
    def from_settings(cls, settings: ModuleType) -> "LedgerPolicy":
        try:
            threshold = Decimal(str(getattr(settings, "HALF_DAY_THRESHOLD_HOURS", DEFAULT_HALF_DAY_THRESHOLD_HOURS)))
        except InvalidOperation as e:
            raise ValueError("HALF_DAY_THRESHOLD_HOURS must be a number") from e

        return cls(
            require_location=bool(getattr(settings, "REQUIRE_LOCATION", False)),
            max_accuracy_meters=float(getattr(settings, "MAX_LOCATION_ACCURACY_METERS", DEFAULT_MAX_LOCATION_ACCURACY_METERS)),
            half_day_threshold_hours=threshold,
            missing_clock_out_status=LedgerStatus(getattr(settings, "MISSING_CLOCK_OUT_STATUS", "half_day")),
            leave_punch_policy=LeavePunchPolicy(getattr(settings, "LEAVE_PUNCH_POLICY", "flag")),
        )
