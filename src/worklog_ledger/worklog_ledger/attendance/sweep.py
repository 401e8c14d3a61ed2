from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.exceptions import DuplicateLedgerEntry
from ..core.policy import LedgerPolicy
from ..leaves.repository import LeaveDirectory
from ..metrics.calculator.base import TimeMetricsCalculator
from ..metrics.calculator.standard_calculator import StandardTimeMetricsCalculator
from ..metrics.model import TimeMetrics
from ..staff.model import StaffMember
from ..staff.repository import StaffRegistry
from ..working_days.resolver import WorkingCalendarResolver
from .factory import StatusDeriverFactory
from .model import DayFacts
from .repository import LedgerRepository

logger = logging.getLogger(__name__)


class SweepOutcome(str, Enum):
    CREATED = "created"
    FINALIZED = "finalized"
    UNCHANGED = "unchanged"


@dataclass
class SweepReport:
    organization_id: int
    work_date: date
    created: int = 0
    finalized: int = 0
    unchanged: int = 0
    failed: int = 0
    failed_staff_ids: list[int] = field(default_factory=list)

    def count(self, outcome: SweepOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def as_dict(self) -> dict:
        return {
            "organization_id": self.organization_id,
            "work_date": self.work_date.isoformat(),
            "created": self.created,
            "finalized": self.finalized,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "failed_staff_ids": list(self.failed_staff_ids),
        }


class EndOfDaySweep:
    """End-of-day reconciliation for one organization and date.

    Only entries that are missing or not yet finalized are touched, so running
    the sweep again for the same date changes nothing.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        staff: StaffRegistry,
        leaves: LeaveDirectory,
        calendar: WorkingCalendarResolver,
        *,
        policy: LedgerPolicy | None = None,
        calculator: TimeMetricsCalculator | None = None,
        status_factory: StatusDeriverFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._ledger = ledger
        self._staff = staff
        self._leaves = leaves
        self._calendar = calendar
        self._policy = policy or LedgerPolicy()
        self._calculator = calculator or StandardTimeMetricsCalculator()
        self._factory = status_factory or StatusDeriverFactory()
        self._clock = clock

    def run(self, organization_id: int, work_date: date, *, company_id: Optional[int] = None) -> SweepReport:
        report = SweepReport(organization_id=organization_id, work_date=work_date)

        for member in self._staff.list_active(organization_id=organization_id, company_id=company_id):
            try:
                outcome = self.reconcile(member, work_date)
            except Exception:
                logger.exception("Sweep failed for staff %s on %s; skipping", member.staff_member_id, work_date)
                report.failed += 1
                report.failed_staff_ids.append(member.staff_member_id)
                continue
            report.count(outcome)

        logger.info(
            "Sweep %s org=%s company=%s: created=%s finalized=%s unchanged=%s failed=%s",
            work_date,
            organization_id,
            company_id,
            report.created,
            report.finalized,
            report.unchanged,
            report.failed,
        )
        return report

    def reconcile(self, member: StaffMember, work_date: date) -> SweepOutcome:
        staff_id = member.staff_member_id
        entry = self._ledger.get_for_staff_and_date(staff_id, work_date)
        if entry and entry.is_finalized:
            return SweepOutcome.UNCHANGED

        organization_id = entry.organization_id if entry else member.organization_id
        company_id = entry.company_id if entry else member.company_id
        is_working_day = self._calendar.is_working_day(organization_id, company_id, work_date)
        leave = self._leaves.get_approved_leave(staff_id, work_date)

        if entry is None or entry.clock_in is None:
            facts = DayFacts(is_working_day=is_working_day, on_approved_leave=leave is not None, at_day_close=True)
            decision = self._factory.derive(facts, self._policy)
            note = leave.describe() if leave and is_working_day else decision.note

            if entry is None:
                try:
                    self._ledger.insert_marker(
                        staff_member_id=staff_id,
                        log_date=work_date,
                        organization_id=organization_id,
                        company_id=company_id,
                        status=decision.status,
                        metrics=TimeMetrics.zero(),
                        note=note,
                        finalized_at=self._clock(),
                        created_by=None,
                    )
                except DuplicateLedgerEntry:
                    logger.info("Staff %s punched while the sweep ran for %s; leaving entry alone", staff_id, work_date)
                    return SweepOutcome.UNCHANGED
                return SweepOutcome.CREATED

            ok = self._ledger.finalize(
                entry_id=entry.entry_id,
                status=decision.status,
                anomaly=None,
                metrics=TimeMetrics.zero(),
                note=note,
                finalized_at=self._clock(),
                updated_by=None,
            )
            return SweepOutcome.FINALIZED if ok else SweepOutcome.UNCHANGED

        shift = self._staff.get_shift_window(staff_id, work_date)
        metrics = self._calculator.calculate(
            log_date=work_date,
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            break_minutes=shift.break_minutes if shift else 0,
            shift=shift,
            is_working_day=is_working_day,
        )
        facts = DayFacts(
            is_working_day=is_working_day,
            on_approved_leave=leave is not None,
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            total_hours=metrics.total_hours,
            at_day_close=True,
        )
        decision = self._factory.derive(facts, self._policy)
        if decision.anomaly:
            logger.warning("Sweep flagged entry %s (staff %s): %s", entry.entry_id, staff_id, decision.anomaly.value)

        ok = self._ledger.finalize(
            entry_id=entry.entry_id,
            status=decision.status,
            anomaly=decision.anomaly,
            metrics=metrics,
            note=decision.note or entry.note,
            finalized_at=self._clock(),
            updated_by=None,
        )
        return SweepOutcome.FINALIZED if ok else SweepOutcome.UNCHANGED
