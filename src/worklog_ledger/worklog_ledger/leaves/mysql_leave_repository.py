from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ApprovedLeave
from .repository import LeaveDirectory

_SELECT = """
    SELECT lr.request_id, lr.staff_member_id, lr.start_date, lr.end_date, lr.reason, lc.title AS category
    FROM leave_requests lr
    LEFT JOIN leave_categories lc ON lc.category_id = lr.category_id
"""


def _to_leave(r: dict) -> ApprovedLeave:
    return ApprovedLeave(
        request_id=int(r["request_id"]),
        staff_member_id=int(r["staff_member_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        category=r.get("category"),
        reason=r.get("reason"),
    )


class MySQLLeaveDirectory(LeaveDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_approved_leave(self, staff_member_id: int, day: date) -> Optional[ApprovedLeave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE lr.staff_member_id=%s AND lr.approval_status='approved'
                  AND lr.start_date <= %s AND lr.end_date >= %s
                ORDER BY lr.start_date
                LIMIT 1
                """,
                (int(staff_member_id), day, day),
            )
            r = fetchone(cur)
            return _to_leave(r) if r else None
