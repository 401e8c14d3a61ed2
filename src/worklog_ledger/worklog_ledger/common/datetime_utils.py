from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse 'YYYY-MM-DDTHH:MM[:SS]' (or with a space) into a naive datetime."""
    return datetime.fromisoformat(value.strip().replace(" ", "T"))


def now_local() -> datetime:
    """Current local wall-clock time. Services take a clock callable defaulting to this."""
    return datetime.now()


def anchor_shift(log_date: date, start: time, end: time) -> tuple[datetime, datetime]:
    """Place a shift window on a calendar day.

    A window whose end is not after its start crosses midnight, so its end
    lands on the following day.
    """

    shift_start = datetime.combine(log_date, start)
    shift_end = datetime.combine(log_date, end)
    if shift_end <= shift_start:
        shift_end += timedelta(days=1)
    return shift_start, shift_end


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    if month == 12:
        return first, date(year, 12, 31)
    return first, date(year, month + 1, 1) - timedelta(days=1)
