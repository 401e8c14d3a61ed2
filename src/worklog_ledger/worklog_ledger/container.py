from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .aggregation.service import LedgerAggregator
from .attendance.factory import StatusDeriverFactory
from .attendance.mysql_ledger_repository import MySQLLedgerRepository
from .attendance.repository import LedgerRepository
from .attendance.service import PunchProcessor
from .attendance.sweep import EndOfDaySweep
from .core.policy import LedgerPolicy
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveDirectory
from .leaves.repository import LeaveDirectory
from .metrics.calculator.standard_calculator import StandardTimeMetricsCalculator
from .reports.service import AttendanceReportService
from .staff.mysql_staff_repository import MySQLStaffRegistry
from .staff.repository import StaffRegistry
from .working_days.mysql_working_days_repository import MySQLWorkingDaysRepository
from .working_days.repository import WorkingDaysRepository
from .working_days.resolver import WorkingCalendarResolver
from .working_days.service import WorkingDaysService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    policy: LedgerPolicy

    ledger_repo: LedgerRepository
    staff_registry: StaffRegistry
    leave_directory: LeaveDirectory
    working_days_repo: WorkingDaysRepository

    calendar: WorkingCalendarResolver
    punch_processor: PunchProcessor
    sweep: EndOfDaySweep
    ledger_aggregator: LedgerAggregator
    report_service: AttendanceReportService
    working_days_service: WorkingDaysService


def wire_container(
    *,
    ledger_repo: LedgerRepository,
    staff_registry: StaffRegistry,
    leave_directory: LeaveDirectory,
    working_days_repo: WorkingDaysRepository,
    policy: LedgerPolicy,
    conn: Optional[DatabaseConnection] = None,
    clock=None,
) -> Container:
    """Build the service graph on top of any set of repositories."""

    calendar = WorkingCalendarResolver(working_days_repo)
    calculator = StandardTimeMetricsCalculator()
    status_factory = StatusDeriverFactory()
    extra = {"clock": clock} if clock else {}

    punch_processor = PunchProcessor(
        ledger_repo,
        staff_registry,
        leave_directory,
        calendar,
        policy=policy,
        calculator=calculator,
        status_factory=status_factory,
        **extra,
    )
    sweep = EndOfDaySweep(
        ledger_repo,
        staff_registry,
        leave_directory,
        calendar,
        policy=policy,
        calculator=calculator,
        status_factory=status_factory,
        **extra,
    )
    ledger_aggregator = LedgerAggregator(ledger_repo)

    return Container(
        conn=conn,
        policy=policy,
        ledger_repo=ledger_repo,
        staff_registry=staff_registry,
        leave_directory=leave_directory,
        working_days_repo=working_days_repo,
        calendar=calendar,
        punch_processor=punch_processor,
        sweep=sweep,
        ledger_aggregator=ledger_aggregator,
        report_service=AttendanceReportService(ledger_aggregator, staff_registry, calendar),
        working_days_service=WorkingDaysService(working_days_repo),
    )


def build_container(*, db_config: dict, policy: LedgerPolicy | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        ledger_repo=MySQLLedgerRepository(conn),
        staff_registry=MySQLStaffRegistry(conn),
        leave_directory=MySQLLeaveDirectory(conn),
        working_days_repo=MySQLWorkingDaysRepository(conn),
        policy=policy or LedgerPolicy(),
        conn=conn,
    )
