from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..common.validators import require_date_range
from ..core.constants import HOURS_QUANTUM
from ..core.enums import LedgerStatus
from ..core.exceptions import ValidationError
from ..attendance.model import WorkLogEntry
from ..attendance.repository import LedgerRepository

_STATUS_COUNTERS = {
    LedgerStatus.PRESENT: "present_days",
    LedgerStatus.ABSENT: "absent_days",
    LedgerStatus.HALF_DAY: "half_days",
    LedgerStatus.ON_LEAVE: "on_leave_days",
    LedgerStatus.HOLIDAY: "holidays",
}


@dataclass
class LedgerSummary:
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    on_leave_days: int = 0
    holidays: int = 0
    unreconciled_days: int = 0
    late_days: int = 0
    total_late_minutes: int = 0
    total_overtime_minutes: int = 0
    total_early_leave_minutes: int = 0
    total_hours: Decimal = field(default_factory=lambda: Decimal("0.00"))

    def add(self, entry: WorkLogEntry) -> None:
        # Days still waiting for clock-out or the sweep stay out of every sum.
        if not entry.is_reconciled:
            self.unreconciled_days += 1
            return

        counter = _STATUS_COUNTERS.get(entry.status)
        if counter:
            setattr(self, counter, getattr(self, counter) + 1)

        late = int(entry.late_minutes or 0)
        if late > 0:
            self.late_days += 1
        self.total_late_minutes += late
        self.total_overtime_minutes += int(entry.overtime_minutes or 0)
        self.total_early_leave_minutes += int(entry.early_leave_minutes or 0)
        self.total_hours = (self.total_hours + entry.total_hours).quantize(HOURS_QUANTUM)

    def as_dict(self) -> dict:
        return {
            "present_days": self.present_days,
            "absent_days": self.absent_days,
            "half_days": self.half_days,
            "on_leave_days": self.on_leave_days,
            "holidays": self.holidays,
            "unreconciled_days": self.unreconciled_days,
            "late_days": self.late_days,
            "total_late_minutes": self.total_late_minutes,
            "total_overtime_minutes": self.total_overtime_minutes,
            "total_early_leave_minutes": self.total_early_leave_minutes,
            "total_hours": str(self.total_hours),
        }


def summarize_entries(entries: Iterable[WorkLogEntry]) -> LedgerSummary:
    summary = LedgerSummary()
    for entry in entries:
        summary.add(entry)
    return summary


class LedgerAggregator:
    """Read-side period rollups over work log entries."""

    def __init__(self, ledger: LedgerRepository):
        self._ledger = ledger

    def summarize(
        self,
        organization_id: int,
        *,
        start: date,
        end: date,
        staff_member_id: Optional[int] = None,
        company_id: Optional[int] = None,
    ) -> LedgerSummary:
        if (staff_member_id is None) == (company_id is None):
            raise ValidationError("Provide exactly one of staff_member_id or company_id")
        require_date_range(start, end)

        entries = self._ledger.list_for_period(
            organization_id=organization_id,
            start=start,
            end=end,
            staff_member_id=staff_member_id,
            company_id=company_id,
        )
        return summarize_entries(entries)

    def summarize_by_staff(
        self,
        organization_id: int,
        *,
        start: date,
        end: date,
        company_id: Optional[int] = None,
    ) -> dict[int, LedgerSummary]:
        require_date_range(start, end)

        grouped: dict[int, LedgerSummary] = {}
        for entry in self._ledger.list_for_period(
            organization_id=organization_id, start=start, end=end, company_id=company_id
        ):
            grouped.setdefault(entry.staff_member_id, LedgerSummary()).add(entry)
        return grouped

    def staff_period(
        self,
        organization_id: int,
        staff_member_id: int,
        *,
        start: date,
        end: date,
    ) -> tuple[list[WorkLogEntry], LedgerSummary]:
        """Entries of one staff member in date order, with their rollup."""

        require_date_range(start, end)
        entries = sorted(
            self._ledger.list_for_period(
                organization_id=organization_id, start=start, end=end, staff_member_id=staff_member_id
            ),
            key=lambda e: e.log_date,
        )
        return entries, summarize_entries(entries)
