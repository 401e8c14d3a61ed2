from datetime import date

import pytest

from src.worklog_ledger.worklog_ledger.core.enums import DayType
from src.worklog_ledger.worklog_ledger.core.exceptions import UnresolvedCalendar
from src.worklog_ledger.worklog_ledger.working_days.model import Holiday, WorkingDaysConfig
from src.worklog_ledger.worklog_ledger.working_days.resolver import WorkingCalendarResolver, select_config

from tests.fakes import InMemoryWorkingDays

MONDAY = date(2026, 2, 2)
SATURDAY = date(2026, 2, 7)


def org_default(**kwargs) -> WorkingDaysConfig:
    return WorkingDaysConfig(config_id=1, organization_id=1, company_id=None, **kwargs)


def test_org_default_weekdays():
    resolver = WorkingCalendarResolver(InMemoryWorkingDays(configs=[org_default()]))

    assert resolver.resolve_day(1, None, MONDAY) == DayType.WORKING
    assert resolver.resolve_day(1, None, SATURDAY) == DayType.WEEKEND
    assert resolver.is_working_day(1, 5, MONDAY)


def test_company_default_beats_org_default():
    configs = [
        org_default(),
        WorkingDaysConfig(config_id=2, organization_id=1, company_id=5, saturday=True),
    ]
    resolver = WorkingCalendarResolver(InMemoryWorkingDays(configs=configs))

    assert resolver.is_working_day(1, 5, SATURDAY)
    assert not resolver.is_working_day(1, 6, SATURDAY)


def test_windowed_config_beats_defaults():
    configs = [
        WorkingDaysConfig(config_id=2, organization_id=1, company_id=5),
        WorkingDaysConfig(
            config_id=3,
            organization_id=1,
            company_id=None,
            monday=False,
            from_date=date(2026, 2, 1),
            to_date=date(2026, 2, 28),
        ),
    ]

    chosen = select_config(configs, company_id=5, day=MONDAY)
    assert chosen.config_id == 3
    assert select_config(configs, company_id=5, day=date(2026, 3, 2)).config_id == 2


def test_company_window_beats_org_window():
    configs = [
        WorkingDaysConfig(config_id=3, organization_id=1, company_id=None, from_date=date(2026, 1, 1)),
        WorkingDaysConfig(config_id=4, organization_id=1, company_id=5, from_date=date(2026, 2, 1), to_date=date(2026, 2, 28)),
    ]

    assert select_config(configs, company_id=5, day=MONDAY).config_id == 4
    assert select_config(configs, company_id=None, day=MONDAY).config_id == 3


def test_no_config_is_unresolved_and_non_working():
    with pytest.raises(UnresolvedCalendar):
        select_config([], company_id=None, day=MONDAY)

    resolver = WorkingCalendarResolver(InMemoryWorkingDays())
    assert resolver.resolve_day(1, None, MONDAY) == DayType.WEEKEND
    assert not resolver.is_working_day(1, None, MONDAY)


def test_holidays_org_wide_and_company_specific():
    working_days = InMemoryWorkingDays(
        configs=[org_default()],
        holidays=[
            Holiday(holiday_id=1, organization_id=1, company_id=None, holiday_date=MONDAY, name="Org day"),
            Holiday(holiday_id=2, organization_id=1, company_id=5, holiday_date=date(2026, 2, 3), name="Site day"),
        ],
    )
    resolver = WorkingCalendarResolver(working_days)

    assert resolver.resolve_day(1, 7, MONDAY) == DayType.HOLIDAY
    assert resolver.resolve_day(1, 5, date(2026, 2, 3)) == DayType.HOLIDAY
    assert resolver.resolve_day(1, 7, date(2026, 2, 3)) == DayType.WORKING


def test_working_days_between_skips_weekends_and_holidays():
    working_days = InMemoryWorkingDays(
        configs=[org_default()],
        holidays=[Holiday(holiday_id=1, organization_id=1, company_id=None, holiday_date=MONDAY, name="Org day")],
    )
    resolver = WorkingCalendarResolver(working_days)

    # 2026-02-01 (Sun) .. 2026-02-14 (Sat): ten weekdays, one of them a holiday
    assert resolver.working_days_between(1, None, date(2026, 2, 1), date(2026, 2, 14)) == 9
