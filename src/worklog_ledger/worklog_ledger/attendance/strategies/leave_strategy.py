from __future__ import annotations

from dataclasses import replace

from ...core.enums import AnomalyFlag, LedgerStatus
from ...core.policy import LedgerPolicy
from ..model import DayFacts
from .base import StatusDecision, StatusStrategy
from .punch_strategy import PunchStrategy


class LeaveStrategy(StatusStrategy):
    """Approved leave covers the day.

    Without a punch the day is on_leave. A punch on a leave day is recorded as
    worked time and flagged rather than overwritten; it is never turned into
    an absence, even when the clock-out is missing at day close.
    """

    def __init__(self, punch_strategy: PunchStrategy | None = None):
        self._punch = punch_strategy or PunchStrategy()

    def decide(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        if not facts.has_punch:
            return StatusDecision(status=LedgerStatus.ON_LEAVE)

        decision = self._punch.decide(facts, policy)
        note = "Punch recorded on an approved leave day"
        if decision.anomaly == AnomalyFlag.MISSING_CLOCK_OUT:
            note += "; no clock-out recorded by day close"

        status = decision.status
        if status == LedgerStatus.ABSENT:
            status = LedgerStatus.PRESENT
        return replace(decision, status=status, anomaly=AnomalyFlag.PUNCH_ON_LEAVE, note=note)
