from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Session role used by the admin endpoints."""

    ADMIN = "admin"
    STAFF = "staff"


class LedgerStatus(str, Enum):
    """Daily status stored on a work log entry."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    ON_LEAVE = "on_leave"
    HOLIDAY = "holiday"


class AnomalyFlag(str, Enum):
    """Facts that were recorded but contradict the calendar or leave data."""

    PUNCH_ON_HOLIDAY = "punch_on_holiday"
    PUNCH_ON_LEAVE = "punch_on_leave"
    MISSING_CLOCK_OUT = "missing_clock_out"


class DayType(str, Enum):
    WORKING = "working"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class LeavePunchPolicy(str, Enum):
    """What to do when a staff member punches on an approved-leave day."""

    FLAG = "flag"
    REJECT = "reject"
