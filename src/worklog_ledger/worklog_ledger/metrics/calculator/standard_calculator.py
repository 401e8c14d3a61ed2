from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ...common.datetime_utils import anchor_shift
from ...core.constants import HOURS_QUANTUM
from ...staff.model import ShiftWindow
from ..model import TimeMetrics
from .base import TimeMetricsCalculator


def rounded_minutes(delta: timedelta) -> int:
    """Whole minutes in a non-negative span, nearest minute, halves up."""

    seconds = Decimal(str(max(delta.total_seconds(), 0)))
    return int((seconds / 60).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def minutes_past(reference: datetime, moment: datetime) -> int:
    """Minutes by which ``moment`` is after ``reference``; 0 if not after.

    Partial minutes count as a full one so that any positive gap yields a
    positive value.
    """

    seconds = (moment - reference).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 60)


def hours_from_minutes(minutes: int) -> Decimal:
    return (Decimal(minutes) / 60).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class StandardTimeMetricsCalculator(TimeMetricsCalculator):
    """Standard rule: worked = (out - in) - break, not below 0.

    Lateness, early leave and overtime are measured against the shift window
    anchored on the log date. A shift with an overtime threshold only counts
    worked minutes beyond it as overtime. On a non-working day every worked
    minute is overtime and nothing counts as late or early.
    """

    def calculate(
        self,
        *,
        log_date: date,
        clock_in: datetime,
        clock_out: Optional[datetime],
        break_minutes: int,
        shift: Optional[ShiftWindow],
        is_working_day: bool,
    ) -> TimeMetrics:
        break_minutes = max(int(break_minutes or 0), 0)

        worked_minutes = 0
        if clock_out is not None:
            worked_minutes = max(rounded_minutes(clock_out - clock_in) - break_minutes, 0)

        late = early = overtime = 0
        if not is_working_day:
            overtime = worked_minutes
        elif shift is not None:
            shift_start, shift_end = anchor_shift(log_date, shift.shift_start, shift.shift_end)
            late = minutes_past(shift_start, clock_in)
            if clock_out is not None:
                early = minutes_past(clock_out, shift_end)
                overtime = minutes_past(shift_end, clock_out)
                if overtime and shift.overtime_after_hours:
                    # Past the shift end, overtime is what was worked beyond the threshold.
                    regular = int((shift.overtime_after_hours * 60).to_integral_value(rounding=ROUND_HALF_UP))
                    overtime = max(worked_minutes - regular, 0)

        return TimeMetrics(
            late_minutes=late,
            early_leave_minutes=early,
            overtime_minutes=overtime,
            break_minutes=break_minutes,
            total_hours=hours_from_minutes(worked_minutes),
        )
