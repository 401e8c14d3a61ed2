from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import iter_days
from ..core.enums import DayType
from ..core.exceptions import UnresolvedCalendar
from .model import Holiday, WorkingDaysConfig
from .repository import WorkingDaysRepository

logger = logging.getLogger(__name__)


def select_config(
    configs: Sequence[WorkingDaysConfig],
    *,
    company_id: Optional[int],
    day: date,
) -> WorkingDaysConfig:
    """Pick the config that governs ``day``.

    Order: company config whose window contains the day, organization config
    whose window contains the day, company default, organization default.
    """

    company_scoped = [c for c in configs if company_id is not None and c.company_id == company_id]
    org_scoped = [c for c in configs if c.company_id is None]

    for pool in (company_scoped, org_scoped):
        for config in pool:
            if config.is_windowed and config.window_contains(day):
                return config

    for pool in (company_scoped, org_scoped):
        for config in pool:
            if not config.is_windowed:
                return config

    raise UnresolvedCalendar(f"No working-day configuration covers {day.isoformat()}")


def _holiday_on(holidays: Sequence[Holiday], *, company_id: Optional[int], day: date) -> Optional[Holiday]:
    for h in holidays:
        if h.holiday_date == day and (h.company_id is None or h.company_id == company_id):
            return h
    return None


class WorkingCalendarResolver:
    """Answers "is this a working day?" for a tenancy scope.

    A scope with no configuration at all fails closed: the day counts as
    non-working so untracked staff are never marked absent.
    """

    def __init__(self, working_days: WorkingDaysRepository):
        self._working_days = working_days

    def resolve_day(self, organization_id: int, company_id: Optional[int], day: date) -> DayType:
        configs = self._working_days.list_configs(organization_id=organization_id, company_id=company_id)
        holidays = self._working_days.list_holidays(
            organization_id=organization_id, company_id=company_id, start=day, end=day
        )
        return self._resolve(configs, holidays, organization_id=organization_id, company_id=company_id, day=day)

    def is_working_day(self, organization_id: int, company_id: Optional[int], day: date) -> bool:
        return self.resolve_day(organization_id, company_id, day) == DayType.WORKING

    def working_days_between(self, organization_id: int, company_id: Optional[int], start: date, end: date) -> int:
        configs = self._working_days.list_configs(organization_id=organization_id, company_id=company_id)
        holidays = self._working_days.list_holidays(
            organization_id=organization_id, company_id=company_id, start=start, end=end
        )
        return sum(
            1
            for day in iter_days(start, end)
            if self._resolve(configs, holidays, organization_id=organization_id, company_id=company_id, day=day)
            == DayType.WORKING
        )

    def _resolve(
        self,
        configs: Sequence[WorkingDaysConfig],
        holidays: Sequence[Holiday],
        *,
        organization_id: int,
        company_id: Optional[int],
        day: date,
    ) -> DayType:
        if _holiday_on(holidays, company_id=company_id, day=day):
            return DayType.HOLIDAY

        try:
            config = select_config(configs, company_id=company_id, day=day)
        except UnresolvedCalendar as e:
            logger.warning("%s (organization=%s company=%s); treating as non-working", e, organization_id, company_id)
            return DayType.WEEKEND

        return DayType.WORKING if config.works_on(day) else DayType.WEEKEND
