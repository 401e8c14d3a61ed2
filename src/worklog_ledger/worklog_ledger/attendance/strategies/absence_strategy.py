from __future__ import annotations

from ...core.enums import LedgerStatus
from ...core.policy import LedgerPolicy
from ..model import DayFacts
from .base import StatusDecision, StatusStrategy


class AbsenceStrategy(StatusStrategy):
    """Working day, no leave and no clock-in by day close."""

    def decide(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        return StatusDecision(status=LedgerStatus.ABSENT, note="Auto-marked absent - no attendance recorded")
