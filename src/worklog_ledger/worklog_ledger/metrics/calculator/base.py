from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from ...staff.model import ShiftWindow
from ..model import TimeMetrics


class TimeMetricsCalculator(ABC):
    """Calculator interface (Strategy Pattern for time metrics)."""

    @abstractmethod
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
        raise NotImplementedError
