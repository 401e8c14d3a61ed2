from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TimeMetrics:
    """Derived time facts of one ledger entry, always written together."""

    late_minutes: int
    early_leave_minutes: int
    overtime_minutes: int
    break_minutes: int
    total_hours: Decimal

    def __post_init__(self):
        for name in ("late_minutes", "early_leave_minutes", "overtime_minutes", "break_minutes"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.total_hours < 0:
            raise ValueError("total_hours must not be negative")

    @classmethod
    def zero(cls) -> "TimeMetrics":
        return cls(late_minutes=0, early_leave_minutes=0, overtime_minutes=0, break_minutes=0, total_hours=Decimal("0.00"))
