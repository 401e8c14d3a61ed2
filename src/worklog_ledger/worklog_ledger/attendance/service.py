from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.enums import LeavePunchPolicy
from ..core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    DomainError,
    DuplicateLedgerEntry,
    InvalidClockOutTime,
    NotClockedIn,
    NotFoundError,
    PunchOnApprovedLeave,
    ValidationError,
    WorkLogExists,
)
from ..core.policy import LedgerPolicy
from ..geolocation.model import GeoLocation, LocationReading
from ..geolocation.validator import resolve_punch_location
from ..leaves.repository import LeaveDirectory
from ..metrics.calculator.base import TimeMetricsCalculator
from ..metrics.calculator.standard_calculator import StandardTimeMetricsCalculator
from ..metrics.model import TimeMetrics
from ..staff.model import ShiftWindow, StaffMember, TenancyContext
from ..staff.repository import StaffRegistry
from ..working_days.resolver import WorkingCalendarResolver
from .factory import StatusDeriverFactory
from .model import BulkRecordReport, DayFacts, ManualRecord, WorkLogEntry
from .repository import LedgerRepository
from .strategies.base import StatusDecision

logger = logging.getLogger(__name__)


class PunchProcessor:
    """Clock-in/clock-out handling plus the administrative correction path.

    Derived fields only ever come out of the time metrics calculator and the
    status deriver; no method accepts them from a caller.
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

    @property
    def policy(self) -> LedgerPolicy:
        return self._policy

    def today(self) -> date:
        return self._clock().date()

    def _require_staff(self, staff_member_id: int) -> StaffMember:
        staff = self._staff.get_by_id(int(staff_member_id))
        if not staff:
            raise NotFoundError("Staff member not found")
        return staff

    def _derive(
        self,
        *,
        staff_member_id: int,
        organization_id: int,
        company_id: Optional[int],
        log_date: date,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        total_hours=None,
        at_day_close: bool = False,
    ) -> tuple[StatusDecision, DayFacts]:
        facts = DayFacts(
            is_working_day=self._calendar.is_working_day(organization_id, company_id, log_date),
            on_approved_leave=self._leaves.get_approved_leave(staff_member_id, log_date) is not None,
            clock_in=clock_in,
            clock_out=clock_out,
            total_hours=total_hours,
            at_day_close=at_day_close,
        )
        return self._factory.derive(facts, self._policy), facts

    def _metrics_for(
        self,
        log_date: date,
        *,
        clock_in: datetime,
        clock_out: Optional[datetime],
        shift: Optional[ShiftWindow],
        is_working_day: bool,
        break_minutes: Optional[int] = None,
    ) -> TimeMetrics:
        if break_minutes is None:
            break_minutes = shift.break_minutes if shift else 0
        return self._calculator.calculate(
            log_date=log_date,
            clock_in=clock_in,
            clock_out=clock_out,
            break_minutes=break_minutes,
            shift=shift,
            is_working_day=is_working_day,
        )

    def clock_in(
        self,
        staff_member_id: int,
        *,
        timestamp: datetime | None = None,
        location: LocationReading | None = None,
        source_ip: str | None = None,
        actor_id: int | None = None,
    ) -> WorkLogEntry:
        now = timestamp or self._clock()
        today = now.date()
        staff = self._require_staff(staff_member_id)
        staff_id = staff.staff_member_id
        tenancy = self._staff.get_tenancy_context(staff_id) or staff.tenancy

        existing = self._ledger.get_for_staff_and_date(staff_id, today)
        if existing and existing.clock_in is not None:
            raise AlreadyClockedIn("Already clocked in for today")

        geo = resolve_punch_location(location, policy=self._policy)
        actor = actor_id if actor_id is not None else staff_id
        return self._open_entry(staff_id, tenancy, existing, now=now, geo=geo, source_ip=source_ip, actor=actor)

    def _open_entry(
        self,
        staff_id: int,
        tenancy: TenancyContext,
        existing: Optional[WorkLogEntry],
        *,
        now: datetime,
        geo: Optional[GeoLocation],
        source_ip: Optional[str],
        actor: Optional[int],
    ) -> WorkLogEntry:
        today = now.date()
        decision, facts = self._derive(
            staff_member_id=staff_id,
            organization_id=tenancy.organization_id,
            company_id=tenancy.company_id,
            log_date=today,
            clock_in=now,
            clock_out=None,
        )
        if (
            facts.is_working_day
            and facts.on_approved_leave
            and self._policy.leave_punch_policy == LeavePunchPolicy.REJECT
        ):
            raise PunchOnApprovedLeave("An approved leave covers today")
        if decision.anomaly:
            logger.warning("Clock-in for staff %s on %s flagged: %s", staff_id, today, decision.anomaly.value)

        if existing is None:
            try:
                entry_id = self._ledger.insert_clock_in(
                    staff_member_id=staff_id,
                    log_date=today,
                    organization_id=tenancy.organization_id,
                    company_id=tenancy.company_id,
                    clock_in=now,
                    location=geo,
                    source_ip=source_ip,
                    status=decision.status,
                    anomaly=decision.anomaly,
                    note=decision.note,
                    created_by=actor,
                )
            except DuplicateLedgerEntry:
                # Lost the race: either another clock-in or a reconciliation marker got there first.
                existing = self._ledger.get_for_staff_and_date(staff_id, today)
                if existing is None or existing.clock_in is not None:
                    logger.warning("Concurrent clock-in rejected for staff %s on %s", staff_id, today)
                    raise AlreadyClockedIn("Already clocked in for today")
            else:
                logger.info("Staff %s clocked in at %s (entry %s)", staff_id, now.isoformat(), entry_id)
                return self._ledger.get_by_id(entry_id)

        claimed = self._ledger.claim_for_clock_in(
            entry_id=existing.entry_id,
            clock_in=now,
            location=geo,
            source_ip=source_ip,
            status=decision.status,
            anomaly=decision.anomaly,
            note=decision.note,
            updated_by=actor,
        )
        if not claimed:
            logger.warning("Concurrent clock-in rejected for staff %s on %s", staff_id, today)
            raise AlreadyClockedIn("Already clocked in for today")

        logger.info(
            "Staff %s clocked in at %s over %s marker (entry %s)",
            staff_id,
            now.isoformat(),
            existing.status.value if existing.status else "empty",
            existing.entry_id,
        )
        return self._ledger.get_by_id(existing.entry_id)

    def _entry_for_clock_out(self, staff_member_id: int, now: datetime) -> Optional[WorkLogEntry]:
        entry = self._ledger.get_for_staff_and_date(staff_member_id, now.date())
        if entry and entry.clock_in is not None:
            return entry

        # An overnight shift is clocked out on the day after it started.
        previous_day = now.date() - timedelta(days=1)
        previous = self._ledger.get_for_staff_and_date(staff_member_id, previous_day)
        if previous and previous.is_open:
            shift = self._staff.get_shift_window(staff_member_id, previous_day)
            if shift and shift.crosses_midnight:
                return previous
        return entry

    def clock_out(
        self,
        staff_member_id: int,
        *,
        timestamp: datetime | None = None,
        location: LocationReading | None = None,
        source_ip: str | None = None,
        actor_id: int | None = None,
    ) -> WorkLogEntry:
        now = timestamp or self._clock()
        staff = self._require_staff(staff_member_id)
        staff_id = staff.staff_member_id

        entry = self._entry_for_clock_out(staff_id, now)
        if entry is None or entry.clock_in is None:
            raise NotClockedIn("No active clock-in found for today")
        if entry.clock_out is not None:
            raise AlreadyClockedOut("Already clocked out for today")
        if now <= entry.clock_in:
            raise InvalidClockOutTime("Clock-out must be after clock-in")

        geo = resolve_punch_location(location, policy=self._policy)

        shift = self._staff.get_shift_window(staff_id, entry.log_date)
        is_working_day = self._calendar.is_working_day(entry.organization_id, entry.company_id, entry.log_date)
        metrics = self._metrics_for(
            entry.log_date, clock_in=entry.clock_in, clock_out=now, shift=shift, is_working_day=is_working_day
        )
        decision, _ = self._derive(
            staff_member_id=staff_id,
            organization_id=entry.organization_id,
            company_id=entry.company_id,
            log_date=entry.log_date,
            clock_in=entry.clock_in,
            clock_out=now,
            total_hours=metrics.total_hours,
        )

        ok = self._ledger.record_clock_out(
            entry_id=entry.entry_id,
            clock_out=now,
            location=geo,
            source_ip=source_ip,
            status=decision.status,
            anomaly=decision.anomaly,
            metrics=metrics,
            finalized_at=self._clock(),
            updated_by=actor_id if actor_id is not None else staff_id,
        )
        if not ok:
            raise AlreadyClockedOut("Already clocked out for today")

        logger.info(
            "Staff %s clocked out at %s (entry %s, %s h, status %s)",
            staff_id,
            now.isoformat(),
            entry.entry_id,
            metrics.total_hours,
            decision.status.value,
        )
        return self._ledger.get_by_id(entry.entry_id)

    def current_status(self, staff_member_id: int, *, today: date | None = None) -> dict:
        today = today or self._clock().date()
        staff = self._require_staff(staff_member_id)
        shift = self._staff.get_shift_window(staff.staff_member_id, today)
        shift_info = (
            {
                "name": shift.shift_name,
                "start_time": shift.shift_start.strftime("%H:%M"),
                "end_time": shift.shift_end.strftime("%H:%M"),
            }
            if shift
            else None
        )

        entry = self._ledger.get_for_staff_and_date(staff.staff_member_id, today)
        if entry:
            data = entry.summary()
            data["state"] = "clocked_out" if entry.clock_out else ("clocked_in" if entry.clock_in else "not_clocked_in")
            data["shift"] = shift_info
            return data

        leave = self._leaves.get_approved_leave(staff.staff_member_id, today)
        return {
            "status": "on_leave" if leave else "not_clocked_in",
            "state": "not_clocked_in",
            "log_date": today.isoformat(),
            "clock_in": None,
            "clock_out": None,
            "total_hours": None,
            "leave": leave.describe() if leave else None,
            "shift": shift_info,
        }

    def correct_entry(
        self,
        entry_id: int,
        *,
        clock_in: datetime,
        clock_out: datetime | None,
        break_minutes: int | None = None,
        note: str | None = None,
        actor_id: int,
    ) -> WorkLogEntry:
        """Administrative correction: replace punch times and re-derive everything."""

        entry = self._ledger.get_by_id(int(entry_id))
        if not entry:
            raise NotFoundError("Work log not found")
        if clock_in is None:
            raise ValidationError("clock_in is required")
        if clock_in.date() != entry.log_date:
            raise ValidationError("clock_in must fall on the entry's log date")
        if clock_out is not None and clock_out <= clock_in:
            raise InvalidClockOutTime("Clock-out must be after clock-in")
        if clock_out is None and entry.log_date >= self._clock().date():
            raise ValidationError("clock_out is required when correcting an entry of an open day")
        if break_minutes is not None and int(break_minutes) < 0:
            raise ValidationError("break_minutes must not be negative")

        shift = self._staff.get_shift_window(entry.staff_member_id, entry.log_date)
        is_working_day = self._calendar.is_working_day(entry.organization_id, entry.company_id, entry.log_date)
        if break_minutes is None and entry.break_minutes is not None:
            break_minutes = entry.break_minutes
        metrics = self._metrics_for(
            entry.log_date,
            clock_in=clock_in,
            clock_out=clock_out,
            shift=shift,
            is_working_day=is_working_day,
            break_minutes=break_minutes,
        )
        decision, _ = self._derive(
            staff_member_id=entry.staff_member_id,
            organization_id=entry.organization_id,
            company_id=entry.company_id,
            log_date=entry.log_date,
            clock_in=clock_in,
            clock_out=clock_out,
            total_hours=metrics.total_hours,
            at_day_close=True,
        )

        ok = self._ledger.apply_correction(
            entry_id=entry.entry_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=decision.status,
            anomaly=decision.anomaly,
            metrics=metrics,
            note=(note or "").strip() or decision.note or entry.note,
            finalized_at=self._clock(),
            updated_by=actor_id,
        )
        if not ok:
            raise NotFoundError("Work log not found")

        logger.info(
            "Entry %s corrected by %s: status %s -> %s, %s h",
            entry.entry_id,
            actor_id,
            entry.status.value if entry.status else None,
            decision.status.value,
            metrics.total_hours,
        )
        return self._ledger.get_by_id(entry.entry_id)

    def soft_delete(self, entry_id: int, *, actor_id: int) -> None:
        if not self._ledger.soft_delete(entry_id=int(entry_id), deleted_at=self._clock(), deleted_by=actor_id):
            raise NotFoundError("Work log not found")
        logger.info("Entry %s tombstoned by %s", entry_id, actor_id)

    def record_entry(self, record: ManualRecord, *, actor_id: int) -> WorkLogEntry:
        """Record a day's attendance on behalf of a staff member.

        A day that is still running with only a clock-in is opened like a
        punch. Anything else is reconciled and finalized right away. A day
        that already has punches is never overwritten; it has to be corrected.
        """

        staff = self._require_staff(record.staff_member_id)
        staff_id = staff.staff_member_id
        tenancy = self._staff.get_tenancy_context(staff_id) or staff.tenancy
        today = self.today()

        if record.log_date > today:
            raise ValidationError("Attendance cannot be recorded for a future date")
        if record.clock_in is None and record.clock_out is not None:
            raise ValidationError("clock_out requires clock_in")
        if record.clock_in is not None and record.clock_in.date() != record.log_date:
            raise ValidationError("clock_in must fall on log_date")
        if record.clock_out is not None and record.clock_out <= record.clock_in:
            raise InvalidClockOutTime("Clock-out must be after clock-in")

        existing = self._ledger.get_for_staff_and_date(staff_id, record.log_date)
        if existing and (existing.clock_in is not None or record.clock_in is None):
            raise WorkLogExists(f"Staff member {staff_id} already has a work log for {record.log_date.isoformat()}")

        if record.clock_in is not None and record.clock_out is None and record.log_date == today:
            return self._open_entry(
                staff_id, tenancy, existing, now=record.clock_in, geo=None, source_ip=None, actor=actor_id
            )

        if record.clock_in is None:
            metrics = TimeMetrics.zero()
        else:
            metrics = self._metrics_for(
                record.log_date,
                clock_in=record.clock_in,
                clock_out=record.clock_out,
                shift=self._staff.get_shift_window(staff_id, record.log_date),
                is_working_day=self._calendar.is_working_day(
                    tenancy.organization_id, tenancy.company_id, record.log_date
                ),
                break_minutes=record.break_minutes,
            )
        decision, facts = self._derive(
            staff_member_id=staff_id,
            organization_id=tenancy.organization_id,
            company_id=tenancy.company_id,
            log_date=record.log_date,
            clock_in=record.clock_in,
            clock_out=record.clock_out,
            total_hours=metrics.total_hours,
            at_day_close=True,
        )
        if (
            facts.has_punch
            and facts.is_working_day
            and facts.on_approved_leave
            and self._policy.leave_punch_policy == LeavePunchPolicy.REJECT
        ):
            raise PunchOnApprovedLeave(f"An approved leave covers {record.log_date.isoformat()}")

        note = (record.note or "").strip() or decision.note
        if existing is not None:
            filled = self._ledger.fill_marker(
                entry_id=existing.entry_id,
                clock_in=record.clock_in,
                clock_out=record.clock_out,
                status=decision.status,
                anomaly=decision.anomaly,
                metrics=metrics,
                note=note,
                finalized_at=self._clock(),
                updated_by=actor_id,
            )
            if not filled:
                raise WorkLogExists(f"Staff member {staff_id} already has a work log for {record.log_date.isoformat()}")
            entry_id = existing.entry_id
        else:
            try:
                entry_id = self._ledger.insert_recorded(
                    staff_member_id=staff_id,
                    log_date=record.log_date,
                    organization_id=tenancy.organization_id,
                    company_id=tenancy.company_id,
                    clock_in=record.clock_in,
                    clock_out=record.clock_out,
                    status=decision.status,
                    anomaly=decision.anomaly,
                    metrics=metrics,
                    note=note,
                    finalized_at=self._clock(),
                    created_by=actor_id,
                )
            except DuplicateLedgerEntry:
                raise WorkLogExists(f"Staff member {staff_id} already has a work log for {record.log_date.isoformat()}")

        logger.info(
            "Attendance recorded by %s for staff %s on %s: %s, %s h (entry %s)",
            actor_id,
            staff_id,
            record.log_date,
            decision.status.value,
            metrics.total_hours,
            entry_id,
        )
        return self._ledger.get_by_id(entry_id)

    def record_entries(self, records: Sequence[ManualRecord], *, actor_id: int) -> BulkRecordReport:
        """Record several days one by one; a rejected record does not stop the rest."""

        report = BulkRecordReport()
        for record in records:
            try:
                entry = self.record_entry(record, actor_id=actor_id)
            except DomainError as e:
                logger.warning(
                    "Bulk record for staff %s on %s rejected: %s", record.staff_member_id, record.log_date, e
                )
                report.failed.append(
                    {
                        "staff_member_id": record.staff_member_id,
                        "log_date": record.log_date.isoformat(),
                        "error": e.code,
                        "message": str(e),
                    }
                )
            else:
                report.recorded.append(entry.entry_id)
        return report

    def today_summary(self, organization_id: int, *, company_id: int | None = None) -> dict:
        """Headcount of the current day across the active staff in scope."""

        today = self.today()
        members = self._staff.list_active(organization_id=organization_id, company_id=company_id)
        entries = {
            e.staff_member_id: e
            for e in self._ledger.list_for_period(
                organization_id=organization_id, start=today, end=today, company_id=company_id
            )
        }

        counts = dict.fromkeys(
            ("clocked_in", "still_clocked_in", "late", "half_day", "on_leave", "holiday", "absent"), 0
        )
        not_marked = 0
        working_days: dict[Optional[int], bool] = {}
        for member in members:
            entry = entries.get(member.staff_member_id)
            if entry is None:
                not_marked += 1
                continue

            if entry.status and entry.status.value in counts:
                counts[entry.status.value] += 1
            if entry.clock_in is None:
                continue
            counts["clocked_in"] += 1
            if entry.clock_out is None:
                counts["still_clocked_in"] += 1

            late = entry.late_minutes
            if late is None:
                # Open entries carry no metrics yet; measure lateness from the clock-in alone.
                if entry.company_id not in working_days:
                    working_days[entry.company_id] = self._calendar.is_working_day(
                        organization_id, entry.company_id, today
                    )
                late = self._metrics_for(
                    today,
                    clock_in=entry.clock_in,
                    clock_out=None,
                    shift=self._staff.get_shift_window(member.staff_member_id, today),
                    is_working_day=working_days[entry.company_id],
                ).late_minutes
            if late > 0:
                counts["late"] += 1

        total = len(members)
        percentage = Decimal("0.0")
        if total:
            percentage = (Decimal(counts["clocked_in"] * 100) / total).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

        data = {"date": today.isoformat(), "total_staff": total, "not_marked": not_marked}
        data.update(counts)
        data["attendance_percentage"] = str(percentage)
        return data

    def get_staff_member(self, staff_member_id: int) -> StaffMember:
        return self._require_staff(staff_member_id)

    def get_entry(self, entry_id: int, *, organization_id: int) -> WorkLogEntry:
        entry = self._ledger.get_by_id(int(entry_id))
        if not entry or entry.organization_id != organization_id:
            raise NotFoundError("Work log not found")
        return entry

    def list_entries(
        self,
        organization_id: int,
        *,
        start: date,
        end: date,
        staff_member_id: int | None = None,
        company_id: int | None = None,
    ) -> Sequence[WorkLogEntry]:
        if end < start:
            raise ValidationError("end must not be before start")
        return self._ledger.list_for_period(
            organization_id=organization_id,
            start=start,
            end=end,
            staff_member_id=staff_member_id,
            company_id=company_id,
        )
