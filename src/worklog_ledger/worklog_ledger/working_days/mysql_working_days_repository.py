from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import WEEKDAY_FIELDS, Holiday, WorkingDaysConfig
from .repository import WorkingDaysRepository


class MySQLWorkingDaysRepository(WorkingDaysRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_configs(self, *, organization_id: int, company_id: Optional[int] = None) -> Sequence[WorkingDaysConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT config_id, organization_id, company_id, {", ".join(WEEKDAY_FIELDS)}, from_date, to_date
                FROM working_days
                WHERE organization_id=%s AND deleted_at IS NULL
                  AND (company_id IS NULL OR company_id=%s)
                ORDER BY config_id
                """,
                (int(organization_id), company_id),
            )
            return [
                WorkingDaysConfig(
                    config_id=int(r["config_id"]),
                    organization_id=int(r["organization_id"]),
                    company_id=int(r["company_id"]) if r.get("company_id") is not None else None,
                    from_date=r.get("from_date"),
                    to_date=r.get("to_date"),
                    **{name: bool(r[name]) for name in WEEKDAY_FIELDS},
                )
                for r in fetchall(cur)
            ]

    def list_holidays(
        self,
        *,
        organization_id: int,
        company_id: Optional[int],
        start: date,
        end: date,
    ) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id, organization_id, company_id, holiday_date, name
                FROM holidays
                WHERE organization_id=%s AND (company_id IS NULL OR company_id=%s)
                  AND holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (int(organization_id), company_id, start, end),
            )
            return [
                Holiday(
                    holiday_id=int(r["holiday_id"]),
                    organization_id=int(r["organization_id"]),
                    company_id=int(r["company_id"]) if r.get("company_id") is not None else None,
                    holiday_date=r["holiday_date"],
                    name=r["name"],
                )
                for r in fetchall(cur)
            ]

    def create_config(
        self,
        *,
        organization_id: int,
        company_id: Optional[int],
        pattern: dict[str, bool],
        from_date: Optional[date],
        to_date: Optional[date],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO working_days(organization_id, company_id, {", ".join(WEEKDAY_FIELDS)}, from_date, to_date)
                VALUES(%s,%s,{",".join(["%s"] * len(WEEKDAY_FIELDS))},%s,%s)
                """,
                (
                    int(organization_id),
                    company_id,
                    *[1 if pattern.get(name) else 0 for name in WEEKDAY_FIELDS],
                    from_date,
                    to_date,
                ),
            )
            return int(cur.lastrowid)

    def create_holiday(self, *, organization_id: int, company_id: Optional[int], holiday_date: date, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO holidays(organization_id, company_id, holiday_date, name)
                VALUES(%s,%s,%s,%s)
                """,
                (int(organization_id), company_id, holiday_date, name),
            )
            return int(cur.lastrowid)
