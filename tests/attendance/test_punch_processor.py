from __future__ import annotations

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.worklog_ledger.worklog_ledger.attendance.model import ManualRecord
from src.worklog_ledger.worklog_ledger.attendance.service import PunchProcessor
from src.worklog_ledger.worklog_ledger.core.enums import AnomalyFlag, LeavePunchPolicy, LedgerStatus
from src.worklog_ledger.worklog_ledger.core.exceptions import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    InvalidClockOutTime,
    InvalidLocation,
    LocationUnavailable,
    NotClockedIn,
    NotFoundError,
    PunchOnApprovedLeave,
    ValidationError,
    WorkLogExists,
)
from src.worklog_ledger.worklog_ledger.core.policy import LedgerPolicy
from src.worklog_ledger.worklog_ledger.geolocation.model import LocationReading
from src.worklog_ledger.worklog_ledger.leaves.model import ApprovedLeave
from src.worklog_ledger.worklog_ledger.metrics.model import TimeMetrics
from src.worklog_ledger.worklog_ledger.working_days.model import Holiday
from src.worklog_ledger.worklog_ledger.working_days.resolver import WorkingCalendarResolver

from tests.fakes import DAY_SHIFT, NIGHT_SHIFT, FixedClock, InMemoryLeaves, InMemoryLedger, InMemoryStaff, office_week, staff_member

MONDAY = date(2026, 2, 2)
SATURDAY = date(2026, 2, 7)
TUESDAY = date(2026, 2, 3)


def at(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, second)


def build(*, policy=None, leaves=None, working_days=None, shift=DAY_SHIFT, now=None):
    ledger = InMemoryLedger()
    staff = InMemoryStaff(members={1: staff_member(1)}, shifts={1: shift})
    clock = FixedClock(now or at(MONDAY, 20))
    processor = PunchProcessor(
        ledger,
        staff,
        leaves or InMemoryLeaves(),
        WorkingCalendarResolver(working_days or office_week()),
        policy=policy or LedgerPolicy(),
        clock=clock,
    )
    return processor, ledger, staff, clock


def test_late_clock_in_and_overtime_clock_out_is_present():
    processor, ledger, _, _ = build()

    entry = processor.clock_in(1, timestamp=at(MONDAY, 9, 15))
    assert entry.status == LedgerStatus.PRESENT
    assert entry.total_hours is None
    assert entry.late_minutes is None

    entry = processor.clock_out(1, timestamp=at(MONDAY, 17, 30))

    assert entry.late_minutes == 15
    assert entry.overtime_minutes == 30
    assert entry.early_leave_minutes == 0
    assert entry.total_hours == Decimal("8.25")
    assert entry.status == LedgerStatus.PRESENT
    assert entry.is_finalized
    assert len(ledger.all_rows()) == 1


def test_short_day_is_half_day():
    processor, _, _, _ = build()

    processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    entry = processor.clock_out(1, timestamp=at(MONDAY, 12, 0))

    assert entry.status == LedgerStatus.HALF_DAY
    assert entry.early_leave_minutes == 5 * 60
    assert entry.total_hours == Decimal("3.00")


def test_second_clock_in_same_day_is_rejected():
    processor, _, _, _ = build()
    processor.clock_in(1, timestamp=at(MONDAY, 9, 0))

    with pytest.raises(AlreadyClockedIn):
        processor.clock_in(1, timestamp=at(MONDAY, 9, 5))


def test_concurrent_clock_ins_yield_exactly_one_entry():
    processor, ledger, _, _ = build()
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    lock = threading.Lock()

    def punch():
        barrier.wait()
        try:
            processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
            result = "ok"
        except AlreadyClockedIn:
            result = "conflict"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=punch) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7
    assert len(ledger.all_rows()) == 1


def test_clock_out_errors():
    processor, _, _, _ = build()

    with pytest.raises(NotClockedIn):
        processor.clock_out(1, timestamp=at(MONDAY, 17, 0))

    processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    with pytest.raises(InvalidClockOutTime):
        processor.clock_out(1, timestamp=at(MONDAY, 9, 0))

    processor.clock_out(1, timestamp=at(MONDAY, 17, 0))
    with pytest.raises(AlreadyClockedOut):
        processor.clock_out(1, timestamp=at(MONDAY, 18, 0))


def test_unknown_staff_member():
    processor, _, _, _ = build()

    with pytest.raises(NotFoundError):
        processor.clock_in(99, timestamp=at(MONDAY, 9, 0))


def test_location_is_stored_with_source_ip():
    processor, _, _, _ = build()

    entry = processor.clock_in(
        1,
        timestamp=at(MONDAY, 9, 0),
        location=LocationReading(latitude=10.77, longitude=106.69, accuracy=25),
        source_ip="203.0.113.7",
    )

    assert entry.clock_in_location.latitude == 10.77
    assert entry.clock_in_location.accuracy_meters == 25.0
    assert entry.clock_in_ip == "203.0.113.7"


def test_invalid_location_is_rejected_when_required():
    processor, ledger, _, _ = build(policy=LedgerPolicy(require_location=True))

    with pytest.raises(InvalidLocation):
        processor.clock_in(1, timestamp=at(MONDAY, 9, 0), location=LocationReading(latitude=91, longitude=0))
    assert ledger.all_rows() == []


def test_unusable_optional_location_is_dropped():
    processor, _, _, _ = build()

    entry = processor.clock_in(
        1, timestamp=at(MONDAY, 9, 0), location=LocationReading(latitude=200, longitude=10, accuracy=5)
    )

    assert entry.clock_in is not None
    assert entry.clock_in_location is None


def test_missing_location_blocks_only_when_required():
    processor, _, _, _ = build(policy=LedgerPolicy(require_location=True))
    with pytest.raises(LocationUnavailable):
        processor.clock_in(1, timestamp=at(MONDAY, 9, 0))

    processor, _, _, _ = build()
    entry = processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    assert entry.clock_in_location is None


def test_punch_on_holiday_is_recorded_and_flagged():
    working_days = office_week()
    working_days.holidays.append(
        Holiday(holiday_id=1, organization_id=1, company_id=None, holiday_date=MONDAY, name="Founders Day")
    )
    processor, _, _, _ = build(working_days=working_days)

    processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    entry = processor.clock_out(1, timestamp=at(MONDAY, 13, 0))

    assert entry.status == LedgerStatus.HOLIDAY
    assert entry.anomaly == AnomalyFlag.PUNCH_ON_HOLIDAY
    assert entry.overtime_minutes == 240
    assert entry.late_minutes == 0


def test_weekend_work_counts_as_overtime():
    processor, _, _, _ = build(now=at(SATURDAY, 20))

    processor.clock_in(1, timestamp=at(SATURDAY, 10, 0))
    entry = processor.clock_out(1, timestamp=at(SATURDAY, 12, 30))

    assert entry.status == LedgerStatus.HOLIDAY
    assert entry.overtime_minutes == 150
    assert entry.total_hours == Decimal("2.50")


def test_punch_on_approved_leave_is_flagged_by_default():
    leaves = InMemoryLeaves([ApprovedLeave(request_id=1, staff_member_id=1, start_date=MONDAY, end_date=MONDAY)])
    processor, _, _, _ = build(leaves=leaves)

    processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    entry = processor.clock_out(1, timestamp=at(MONDAY, 17, 0))

    assert entry.status == LedgerStatus.PRESENT
    assert entry.anomaly == AnomalyFlag.PUNCH_ON_LEAVE


def test_punch_on_approved_leave_can_be_rejected():
    leaves = InMemoryLeaves([ApprovedLeave(request_id=1, staff_member_id=1, start_date=MONDAY, end_date=MONDAY)])
    processor, ledger, _, _ = build(leaves=leaves, policy=LedgerPolicy(leave_punch_policy=LeavePunchPolicy.REJECT))

    with pytest.raises(PunchOnApprovedLeave):
        processor.clock_in(1, timestamp=at(MONDAY, 9, 0))
    assert ledger.all_rows() == []


def test_overnight_shift_clock_out_closes_previous_day():
    processor, ledger, _, _ = build(shift=NIGHT_SHIFT, now=at(MONDAY, 23))

    processor.clock_in(1, timestamp=at(MONDAY, 22, 10))
    entry = processor.clock_out(1, timestamp=datetime(2026, 2, 3, 6, 30))

    assert entry.log_date == MONDAY
    assert entry.late_minutes == 10
    assert entry.overtime_minutes == 30
    # 8h20m on site minus a 30 minute break
    assert entry.total_hours == Decimal("7.83")
    assert len(ledger.all_rows()) == 1


def test_clock_in_claims_a_sweep_marker():
    processor, ledger, _, _ = build()

    ledger.insert_marker(
        staff_member_id=1,
        log_date=MONDAY,
        organization_id=1,
        company_id=1,
        status=LedgerStatus.ABSENT,
        metrics=TimeMetrics.zero(),
        note="Auto-marked absent - no attendance recorded",
        finalized_at=at(MONDAY, 23),
        created_by=None,
    )

    entry = processor.clock_in(1, timestamp=at(MONDAY, 23, 30))

    assert entry.status == LedgerStatus.PRESENT
    assert entry.total_hours is None
    assert not entry.is_finalized
    assert len(ledger.all_rows()) == 1


def test_current_status_placeholder_and_entry():
    processor, _, _, clock = build(now=at(MONDAY, 8))

    data = processor.current_status(1)
    assert data["status"] == "not_clocked_in"
    assert data["shift"]["start_time"] == "09:00"

    processor.clock_in(1, timestamp=at(MONDAY, 9, 2))
    data = processor.current_status(1)
    assert data["state"] == "clocked_in"
    assert data["status"] == "present"


def test_current_status_on_leave_day():
    leaves = InMemoryLeaves(
        [ApprovedLeave(request_id=1, staff_member_id=1, start_date=MONDAY, end_date=MONDAY, category="Annual")]
    )
    processor, _, _, _ = build(leaves=leaves, now=at(MONDAY, 8))

    data = processor.current_status(1)
    assert data["status"] == "on_leave"
    assert "Annual" in data["leave"]


def test_correction_rederives_metrics():
    processor, _, _, clock = build()
    processor.clock_in(1, timestamp=at(MONDAY, 9, 40))
    entry = processor.clock_out(1, timestamp=at(MONDAY, 12, 0))
    assert entry.status == LedgerStatus.HALF_DAY

    corrected = processor.correct_entry(
        entry.entry_id,
        clock_in=at(MONDAY, 9, 0),
        clock_out=at(MONDAY, 17, 0),
        note="Badge reader outage",
        actor_id=42,
    )

    assert corrected.status == LedgerStatus.PRESENT
    assert corrected.late_minutes == 0
    assert corrected.total_hours == Decimal("8.00")
    assert corrected.updated_by == 42
    assert corrected.note == "Badge reader outage"


def test_correction_requires_clock_in_on_log_date():
    processor, _, _, _ = build()
    entry = processor.clock_in(1, timestamp=at(MONDAY, 9, 0))

    with pytest.raises(ValidationError):
        processor.correct_entry(entry.entry_id, clock_in=at(SATURDAY, 9, 0), clock_out=None, actor_id=42)


def test_soft_delete_frees_the_day():
    processor, ledger, _, _ = build()
    entry = processor.clock_in(1, timestamp=at(MONDAY, 9, 0))

    processor.soft_delete(entry.entry_id, actor_id=42)

    assert ledger.get_for_staff_and_date(1, MONDAY) is None
    with pytest.raises(NotFoundError):
        processor.soft_delete(entry.entry_id, actor_id=42)

    again = processor.clock_in(1, timestamp=at(MONDAY, 9, 30))
    assert again.entry_id != entry.entry_id
    assert len(ledger.all_rows()) == 2


def test_manual_record_fills_an_absence_marker():
    processor, ledger, _, _ = build(now=at(TUESDAY, 8))
    ledger.insert_marker(
        staff_member_id=1,
        log_date=MONDAY,
        organization_id=1,
        company_id=1,
        status=LedgerStatus.ABSENT,
        metrics=TimeMetrics.zero(),
        note="Auto-marked absent - no attendance recorded",
        finalized_at=at(MONDAY, 23),
        created_by=None,
    )

    entry = processor.record_entry(
        ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9), clock_out=at(MONDAY, 17)),
        actor_id=900,
    )

    assert entry.status == LedgerStatus.PRESENT
    assert entry.total_hours == Decimal("8.00")
    assert entry.updated_by == 900
    assert entry.is_finalized
    assert len(ledger.all_rows()) == 1


def test_manual_record_never_overwrites_punches():
    processor, ledger, _, _ = build(now=at(TUESDAY, 8))
    processor.clock_in(1, timestamp=at(MONDAY, 9))
    processor.clock_out(1, timestamp=at(MONDAY, 13))

    with pytest.raises(WorkLogExists):
        processor.record_entry(
            ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 8), clock_out=at(MONDAY, 18)),
            actor_id=900,
        )

    entry = ledger.get_for_staff_and_date(1, MONDAY)
    assert entry.clock_in == at(MONDAY, 9)
    assert entry.total_hours == Decimal("4.00")


def test_manual_record_without_punches_is_absence():
    processor, ledger, _, _ = build(now=at(TUESDAY, 8))

    entry = processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY, note="No show"), actor_id=900)

    assert entry.status == LedgerStatus.ABSENT
    assert entry.total_hours == Decimal("0.00")
    assert entry.note == "No show"
    with pytest.raises(WorkLogExists):
        processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY), actor_id=900)


def test_manual_record_of_a_closed_day_without_clock_out():
    processor, _, _, _ = build(now=at(TUESDAY, 8))

    entry = processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9)), actor_id=900)

    assert entry.status == LedgerStatus.HALF_DAY
    assert entry.anomaly == AnomalyFlag.MISSING_CLOCK_OUT
    assert entry.is_finalized


def test_manual_clock_in_for_today_leaves_the_day_open():
    processor, _, _, clock = build(now=at(MONDAY, 10))

    entry = processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9)), actor_id=900)
    assert entry.is_open
    assert entry.created_by == 900
    assert not entry.is_finalized

    closed = processor.clock_out(1, timestamp=at(MONDAY, 17))
    assert closed.total_hours == Decimal("8.00")


def test_manual_record_validation():
    processor, ledger, _, _ = build(now=at(TUESDAY, 8))

    with pytest.raises(ValidationError):
        processor.record_entry(ManualRecord(staff_member_id=1, log_date=date(2026, 2, 4)), actor_id=900)
    with pytest.raises(ValidationError):
        processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY, clock_out=at(MONDAY, 17)), actor_id=900)
    with pytest.raises(ValidationError):
        processor.record_entry(ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(TUESDAY, 7)), actor_id=900)
    with pytest.raises(InvalidClockOutTime):
        processor.record_entry(
            ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9), clock_out=at(MONDAY, 9)),
            actor_id=900,
        )
    with pytest.raises(NotFoundError):
        processor.record_entry(ManualRecord(staff_member_id=42, log_date=MONDAY), actor_id=900)
    assert ledger.all_rows() == []


def test_manual_record_respects_leave_reject_policy():
    leaves = InMemoryLeaves(leaves=[ApprovedLeave(request_id=1, staff_member_id=1, start_date=MONDAY, end_date=MONDAY)])
    processor, ledger, _, _ = build(
        now=at(TUESDAY, 8), leaves=leaves, policy=LedgerPolicy(leave_punch_policy=LeavePunchPolicy.REJECT)
    )

    with pytest.raises(PunchOnApprovedLeave):
        processor.record_entry(
            ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9), clock_out=at(MONDAY, 17)),
            actor_id=900,
        )
    assert ledger.all_rows() == []


def test_bulk_records_keep_going_past_a_rejected_one():
    processor, ledger, _, _ = build(now=at(TUESDAY, 8))
    records = [
        ManualRecord(staff_member_id=1, log_date=MONDAY, clock_in=at(MONDAY, 9), clock_out=at(MONDAY, 17)),
        ManualRecord(staff_member_id=1, log_date=MONDAY),
        ManualRecord(staff_member_id=7, log_date=MONDAY),
        ManualRecord(staff_member_id=1, log_date=TUESDAY, clock_in=at(TUESDAY, 7, 30)),
    ]

    report = processor.record_entries(records, actor_id=900)

    assert len(report.recorded) == 2
    assert [(f["staff_member_id"], f["error"]) for f in report.failed] == [(1, "work_log_exists"), (7, "not_found")]
    assert report.as_dict()["recorded"] == 2
    assert ledger.get_for_staff_and_date(1, TUESDAY).is_open


def test_today_summary_measures_lateness_of_open_entries():
    processor, _, staff, _ = build(now=at(MONDAY, 10))
    staff.members[2] = staff_member(2)
    staff.shifts[2] = DAY_SHIFT
    processor.clock_in(1, timestamp=at(MONDAY, 9, 5))

    data = processor.today_summary(1)

    assert data["total_staff"] == 2
    assert data["clocked_in"] == 1
    assert data["still_clocked_in"] == 1
    assert data["late"] == 1
    assert data["not_marked"] == 1
    assert data["attendance_percentage"] == "50.0"
