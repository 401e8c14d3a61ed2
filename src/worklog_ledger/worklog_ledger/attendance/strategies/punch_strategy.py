from __future__ import annotations

from ...core.enums import AnomalyFlag, LedgerStatus
from ...core.policy import LedgerPolicy
from ..model import DayFacts
from .base import StatusDecision, StatusStrategy


class PunchStrategy(StatusStrategy):
    """Working day with a clock-in: present or half day by worked hours."""

    def decide(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        if facts.clock_out is None:
            if not facts.at_day_close:
                # Provisional until clock-out or the end-of-day sweep.
                return StatusDecision(status=LedgerStatus.PRESENT)
            return StatusDecision(
                status=policy.missing_clock_out_status,
                anomaly=AnomalyFlag.MISSING_CLOCK_OUT,
                note="No clock-out recorded by day close",
            )

        total_hours = facts.total_hours if facts.total_hours is not None else 0
        if total_hours >= policy.half_day_threshold_hours:
            return StatusDecision(status=LedgerStatus.PRESENT)
        return StatusDecision(status=LedgerStatus.HALF_DAY)
