from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..aggregation.service import LedgerAggregator, LedgerSummary
from ..common.datetime_utils import month_bounds
from ..common.validators import require_date_range
from ..core.exceptions import NotFoundError, ValidationError
from ..staff.repository import StaffRegistry
from ..working_days.resolver import WorkingCalendarResolver

REPORT_FIELDS = [
    "staff_member_id",
    "full_name",
    "company_id",
    "expected_working_days",
    "present_days",
    "half_days",
    "absent_days",
    "on_leave_days",
    "holidays",
    "unreconciled_days",
    "late_days",
    "total_late_minutes",
    "total_early_leave_minutes",
    "total_overtime_minutes",
    "worked_hours",
]


def format_hours(hours: Decimal) -> str:
    minutes = int((hours * 60).to_integral_value(rounding=ROUND_HALF_UP))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class ReportData:
    start: date
    end: date
    rows: list[dict]
    totals: dict


class AttendanceReportService:
    """Period attendance report per staff member, built from ledger rollups."""

    def __init__(self, aggregator: LedgerAggregator, staff: StaffRegistry, calendar: WorkingCalendarResolver):
        self._aggregator = aggregator
        self._staff = staff
        self._calendar = calendar

    def build_period_report(
        self,
        organization_id: int,
        *,
        start: date,
        end: date,
        company_id: Optional[int] = None,
    ) -> ReportData:
        require_date_range(start, end)

        by_staff = self._aggregator.summarize_by_staff(organization_id, start=start, end=end, company_id=company_id)
        members = {
            m.staff_member_id: m
            for m in self._staff.list_active(organization_id=organization_id, company_id=company_id)
        }
        expected_cache: dict[Optional[int], int] = {}

        rows: list[dict] = []
        grand_total = LedgerSummary()
        for staff_id in sorted(set(members) | set(by_staff)):
            member = members.get(staff_id) or self._staff.get_by_id(staff_id)
            summary = by_staff.get(staff_id, LedgerSummary())
            member_company = member.company_id if member else company_id

            if member_company not in expected_cache:
                expected_cache[member_company] = self._calendar.working_days_between(
                    organization_id, member_company, start, end
                )

            row = summary.as_dict()
            row.pop("total_hours")
            row.update(
                {
                    "staff_member_id": staff_id,
                    "full_name": member.full_name if member else "-",
                    "company_id": member_company,
                    "expected_working_days": expected_cache[member_company],
                    "worked_hours": format_hours(summary.total_hours),
                }
            )
            rows.append({name: row[name] for name in REPORT_FIELDS})

            for name in (
                "present_days",
                "absent_days",
                "half_days",
                "on_leave_days",
                "holidays",
                "unreconciled_days",
                "late_days",
                "total_late_minutes",
                "total_overtime_minutes",
                "total_early_leave_minutes",
                "total_hours",
            ):
                setattr(grand_total, name, getattr(grand_total, name) + getattr(summary, name))

        totals = grand_total.as_dict()
        totals["worked_hours"] = format_hours(grand_total.total_hours)
        totals["staff_count"] = len(rows)
        return ReportData(start=start, end=end, rows=rows, totals=totals)

    def monthly_attendance(self, staff_member_id: int, *, year: int, month: int) -> dict:
        """One staff member's month: day records, rollup and expected working days."""

        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        member = self._staff.get_by_id(staff_member_id)
        if member is None:
            raise NotFoundError("Staff member not found")

        start, end = month_bounds(year, month)
        entries, summary = self._aggregator.staff_period(
            member.organization_id, member.staff_member_id, start=start, end=end
        )

        data = {
            "year": year,
            "month": month,
            "staff_member_id": member.staff_member_id,
            "expected_working_days": self._calendar.working_days_between(
                member.organization_id, member.company_id, start, end
            ),
            "worked_hours": format_hours(summary.total_hours),
            "records": [e.summary() for e in entries],
        }
        data.update(summary.as_dict())
        return data
