from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Holiday, WorkingDaysConfig


class WorkingDaysRepository(Protocol):
    def list_configs(self, *, organization_id: int, company_id: Optional[int] = None) -> Sequence[WorkingDaysConfig]:
        """Organization-scope configs plus, when given, the company's own."""

        raise NotImplementedError

    def list_holidays(
        self,
        *,
        organization_id: int,
        company_id: Optional[int],
        start: date,
        end: date,
    ) -> Sequence[Holiday]:
        raise NotImplementedError

    def create_config(
        self,
        *,
        organization_id: int,
        company_id: Optional[int],
        pattern: dict[str, bool],
        from_date: Optional[date],
        to_date: Optional[date],
    ) -> int:
        raise NotImplementedError

    def create_holiday(self, *, organization_id: int, company_id: Optional[int], holiday_date: date, name: str) -> int:
        raise NotImplementedError
