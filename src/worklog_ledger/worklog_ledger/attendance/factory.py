from __future__ import annotations

from dataclasses import dataclass, field

from ..core.policy import LedgerPolicy
from .model import DayFacts
from .strategies.absence_strategy import AbsenceStrategy
from .strategies.base import StatusDecision, StatusStrategy
from .strategies.holiday_strategy import HolidayStrategy
from .strategies.leave_strategy import LeaveStrategy
from .strategies.punch_strategy import PunchStrategy


@dataclass
class StatusDeriverFactory:
    """Factory Pattern: choose the status strategy for a day.

    Precedence: non-working day, approved leave, punch, absence.
    """

    holiday: StatusStrategy = field(default_factory=HolidayStrategy)
    leave: StatusStrategy = field(default_factory=LeaveStrategy)
    punch: StatusStrategy = field(default_factory=PunchStrategy)
    absence: StatusStrategy = field(default_factory=AbsenceStrategy)

    def for_day(self, facts: DayFacts) -> StatusStrategy:
        if not facts.is_working_day:
            return self.holiday
        if facts.on_approved_leave:
            return self.leave
        if facts.has_punch:
            return self.punch
        return self.absence

    def derive(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        return self.for_day(facts).decide(facts, policy)
