from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AnomalyFlag, LedgerStatus
from ...core.policy import LedgerPolicy
from ..model import DayFacts


@dataclass(frozen=True)
class StatusDecision:
    status: LedgerStatus
    anomaly: Optional[AnomalyFlag] = None
    note: Optional[str] = None


class StatusStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide the status of one day."""

    @abstractmethod
    def decide(self, facts: DayFacts, policy: LedgerPolicy) -> StatusDecision:
        raise NotImplementedError
