from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AnomalyFlag, LedgerStatus
from ..core.exceptions import DuplicateLedgerEntry
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, as_float, as_int, db_cursor, fetchall, fetchone, is_duplicate_key
from ..geolocation.model import GeoLocation
from ..metrics.model import TimeMetrics
from .model import WorkLogEntry
from .repository import LedgerRepository

_COLUMNS = """
    entry_id, staff_member_id, log_date, organization_id, company_id, status,
    clock_in, clock_out,
    clock_in_latitude, clock_in_longitude, clock_in_accuracy, clock_in_ip,
    clock_out_latitude, clock_out_longitude, clock_out_accuracy, clock_out_ip,
    break_minutes, late_minutes, early_leave_minutes, overtime_minutes, total_hours,
    anomaly, note, created_by, updated_by, created_at, updated_at, finalized_at, deleted_at
"""


def _location(r: dict, prefix: str) -> Optional[GeoLocation]:
    latitude = r.get(f"{prefix}_latitude")
    longitude = r.get(f"{prefix}_longitude")
    if latitude is None or longitude is None:
        return None
    return GeoLocation(
        latitude=float(latitude),
        longitude=float(longitude),
        accuracy_meters=as_float(r.get(f"{prefix}_accuracy")),
    )


def _location_params(location: Optional[GeoLocation]) -> tuple:
    if location is None:
        return None, None, None
    return location.latitude, location.longitude, location.accuracy_meters


def _metrics_params(metrics: TimeMetrics) -> tuple:
    return (
        metrics.break_minutes,
        metrics.late_minutes,
        metrics.early_leave_minutes,
        metrics.overtime_minutes,
        metrics.total_hours,
    )


def _to_entry(r: dict) -> WorkLogEntry:
    return WorkLogEntry(
        entry_id=int(r["entry_id"]),
        staff_member_id=int(r["staff_member_id"]),
        log_date=r["log_date"],
        organization_id=int(r["organization_id"]),
        company_id=as_int(r.get("company_id")),
        status=LedgerStatus(r["status"]) if r.get("status") else None,
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        clock_in_location=_location(r, "clock_in"),
        clock_out_location=_location(r, "clock_out"),
        clock_in_ip=r.get("clock_in_ip"),
        clock_out_ip=r.get("clock_out_ip"),
        break_minutes=as_int(r.get("break_minutes")),
        late_minutes=as_int(r.get("late_minutes")),
        early_leave_minutes=as_int(r.get("early_leave_minutes")),
        overtime_minutes=as_int(r.get("overtime_minutes")),
        total_hours=as_decimal(r.get("total_hours")),
        anomaly=AnomalyFlag(r["anomaly"]) if r.get("anomaly") else None,
        note=r.get("note"),
        created_by=as_int(r.get("created_by")),
        updated_by=as_int(r.get("updated_by")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        finalized_at=r.get("finalized_at"),
        deleted_at=r.get("deleted_at"),
    )


class MySQLLedgerRepository(LedgerRepository):
    """work_logs table access.

    The unique key on (staff_member_id, log_date, active_key) is the
    serialization point for concurrent punches; duplicate-key errors are
    surfaced as DuplicateLedgerEntry.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, entry_id: int) -> Optional[WorkLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_logs WHERE entry_id=%s AND deleted_at IS NULL",
                (int(entry_id),),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def get_for_staff_and_date(self, staff_member_id: int, log_date: date) -> Optional[WorkLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM work_logs
                WHERE staff_member_id=%s AND log_date=%s AND deleted_at IS NULL
                """,
                (int(staff_member_id), log_date),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def _insert(self, sql: str, params: tuple) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, params)
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateLedgerEntry(str(e)) from e
            raise

    def _update(self, sql: str, params: tuple) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return cur.rowcount > 0

    def insert_clock_in(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        clock_in: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        note: Optional[str],
        created_by: Optional[int],
    ) -> int:
        return self._insert(
            """
            INSERT INTO work_logs(
                staff_member_id, log_date, organization_id, company_id, status, clock_in,
                clock_in_latitude, clock_in_longitude, clock_in_accuracy, clock_in_ip,
                anomaly, note, created_by, updated_by
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(staff_member_id),
                log_date,
                int(organization_id),
                company_id,
                status.value,
                clock_in,
                *_location_params(location),
                source_ip,
                anomaly.value if anomaly else None,
                note,
                created_by,
                created_by,
            ),
        )

    def claim_for_clock_in(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        note: Optional[str],
        updated_by: Optional[int],
    ) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET clock_in=%s, clock_in_latitude=%s, clock_in_longitude=%s, clock_in_accuracy=%s, clock_in_ip=%s,
                status=%s, anomaly=%s, note=%s, updated_by=%s,
                break_minutes=NULL, late_minutes=NULL, early_leave_minutes=NULL,
                overtime_minutes=NULL, total_hours=NULL, finalized_at=NULL
            WHERE entry_id=%s AND clock_in IS NULL AND deleted_at IS NULL
            """,
            (
                clock_in,
                *_location_params(location),
                source_ip,
                status.value,
                anomaly.value if anomaly else None,
                note,
                updated_by,
                int(entry_id),
            ),
        )

    def record_clock_out(
        self,
        *,
        entry_id: int,
        clock_out: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET clock_out=%s, clock_out_latitude=%s, clock_out_longitude=%s, clock_out_accuracy=%s, clock_out_ip=%s,
                status=%s, anomaly=%s,
                break_minutes=%s, late_minutes=%s, early_leave_minutes=%s, overtime_minutes=%s, total_hours=%s,
                finalized_at=%s, updated_by=%s
            WHERE entry_id=%s AND clock_in IS NOT NULL AND clock_out IS NULL AND deleted_at IS NULL
            """,
            (
                clock_out,
                *_location_params(location),
                source_ip,
                status.value,
                anomaly.value if anomaly else None,
                *_metrics_params(metrics),
                finalized_at,
                updated_by,
                int(entry_id),
            ),
        )

    def insert_marker(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        status: LedgerStatus,
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        created_by: Optional[int],
    ) -> int:
        return self._insert(
            """
            INSERT INTO work_logs(
                staff_member_id, log_date, organization_id, company_id, status,
                break_minutes, late_minutes, early_leave_minutes, overtime_minutes, total_hours,
                note, finalized_at, created_by, updated_by
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(staff_member_id),
                log_date,
                int(organization_id),
                company_id,
                status.value,
                *_metrics_params(metrics),
                note,
                finalized_at,
                created_by,
                created_by,
            ),
        )

    def insert_recorded(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        created_by: Optional[int],
    ) -> int:
        return self._insert(
            """
            INSERT INTO work_logs(
                staff_member_id, log_date, organization_id, company_id, status, clock_in, clock_out,
                break_minutes, late_minutes, early_leave_minutes, overtime_minutes, total_hours,
                anomaly, note, finalized_at, created_by, updated_by
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(staff_member_id),
                log_date,
                int(organization_id),
                company_id,
                status.value,
                clock_in,
                clock_out,
                *_metrics_params(metrics),
                anomaly.value if anomaly else None,
                note,
                finalized_at,
                created_by,
                created_by,
            ),
        )

    def fill_marker(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET clock_in=%s, clock_out=%s, status=%s, anomaly=%s,
                break_minutes=%s, late_minutes=%s, early_leave_minutes=%s, overtime_minutes=%s, total_hours=%s,
                note=%s, finalized_at=%s, updated_by=%s
            WHERE entry_id=%s AND clock_in IS NULL AND deleted_at IS NULL
            """,
            (
                clock_in,
                clock_out,
                status.value,
                anomaly.value if anomaly else None,
                *_metrics_params(metrics),
                note,
                finalized_at,
                updated_by,
                int(entry_id),
            ),
        )

    def finalize(
        self,
        *,
        entry_id: int,
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET status=%s, anomaly=%s,
                break_minutes=%s, late_minutes=%s, early_leave_minutes=%s, overtime_minutes=%s, total_hours=%s,
                note=%s, finalized_at=%s, updated_by=%s
            WHERE entry_id=%s AND finalized_at IS NULL AND deleted_at IS NULL
            """,
            (
                status.value,
                anomaly.value if anomaly else None,
                *_metrics_params(metrics),
                note,
                finalized_at,
                updated_by,
                int(entry_id),
            ),
        )

    def apply_correction(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET clock_in=%s, clock_out=%s, status=%s, anomaly=%s,
                break_minutes=%s, late_minutes=%s, early_leave_minutes=%s, overtime_minutes=%s, total_hours=%s,
                note=%s, finalized_at=%s, updated_by=%s
            WHERE entry_id=%s AND deleted_at IS NULL
            """,
            (
                clock_in,
                clock_out,
                status.value,
                anomaly.value if anomaly else None,
                *_metrics_params(metrics),
                note,
                finalized_at,
                updated_by,
                int(entry_id),
            ),
        )

    def soft_delete(self, *, entry_id: int, deleted_at: datetime, deleted_by: Optional[int]) -> bool:
        return self._update(
            """
            UPDATE work_logs
            SET deleted_at=%s, updated_by=%s
            WHERE entry_id=%s AND deleted_at IS NULL
            """,
            (deleted_at, deleted_by, int(entry_id)),
        )

    def list_for_period(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        staff_member_id: Optional[int] = None,
        company_id: Optional[int] = None,
    ) -> Sequence[WorkLogEntry]:
        clauses = ["organization_id=%s", "log_date BETWEEN %s AND %s", "deleted_at IS NULL"]
        params: list[object] = [int(organization_id), start, end]

        if staff_member_id is not None:
            clauses.append("staff_member_id=%s")
            params.append(int(staff_member_id))
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM work_logs
                WHERE {" AND ".join(clauses)}
                ORDER BY log_date DESC, staff_member_id ASC
                """,
                tuple(params),
            )
            return [_to_entry(r) for r in fetchall(cur)]
