from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ShiftWindow, StaffMember, TenancyContext
from .repository import StaffRegistry


def _to_staff(r: dict) -> StaffMember:
    return StaffMember(
        staff_member_id=int(r["staff_member_id"]),
        full_name=r["full_name"],
        organization_id=int(r["organization_id"]),
        company_id=int(r["company_id"]) if r.get("company_id") is not None else None,
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLStaffRegistry(StaffRegistry):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, staff_member_id: int) -> Optional[StaffMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT staff_member_id, full_name, organization_id, company_id, is_active
                FROM staff_members
                WHERE staff_member_id=%s
                """,
                (int(staff_member_id),),
            )
            r = fetchone(cur)
            return _to_staff(r) if r else None

    def get_tenancy_context(self, staff_member_id: int) -> Optional[TenancyContext]:
        staff = self.get_by_id(staff_member_id)
        return staff.tenancy if staff else None

    def get_shift_window(self, staff_member_id: int, work_date: date) -> Optional[ShiftWindow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.shift_name, s.start_time, s.end_time, COALESCE(s.break_minutes, 0) AS break_minutes,
                    s.overtime_after_hours
                FROM staff_members sm
                LEFT JOIN staff_shift_schedules sc
                    ON sc.staff_member_id = sm.staff_member_id AND sc.work_date = %s
                JOIN shifts s ON s.shift_id = COALESCE(sc.shift_id, sm.shift_id)
                WHERE sm.staff_member_id=%s
                """,
                (work_date, int(staff_member_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ShiftWindow(
                shift_start=normalize_mysql_time(r["start_time"]),
                shift_end=normalize_mysql_time(r["end_time"]),
                break_minutes=int(r.get("break_minutes") or 0),
                shift_name=r.get("shift_name"),
                overtime_after_hours=as_decimal(r.get("overtime_after_hours")),
            )

    def list_active(self, *, organization_id: int, company_id: Optional[int] = None) -> Sequence[StaffMember]:
        clauses = ["organization_id=%s", "is_active=1"]
        params: list[object] = [int(organization_id)]
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT staff_member_id, full_name, organization_id, company_id, is_active
                FROM staff_members
                WHERE {" AND ".join(clauses)}
                ORDER BY staff_member_id
                """,
                tuple(params),
            )
            return [_to_staff(r) for r in fetchall(cur)]
