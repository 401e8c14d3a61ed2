from __future__ import annotations

from ...core.enums import AnomalyFlag, LedgerStatus
from ...core.policy import LedgerPolicy
from ..model import DayFacts
from .base import StatusDecision, StatusStrategy


class HolidayStrategy(StatusStrategy):
    """Non-working day. Wins over any punch; a punch is kept but flagged."""

    def decide(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        if facts.has_punch:
            return StatusDecision(
                status=LedgerStatus.HOLIDAY,
                anomaly=AnomalyFlag.PUNCH_ON_HOLIDAY,
                note="Punch recorded on a non-working day",
            )
        return StatusDecision(status=LedgerStatus.HOLIDAY, note="Non-working day")
