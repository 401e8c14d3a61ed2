from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ApprovedLeave:
    """An approved leave request as seen by the ledger (read-only)."""

    request_id: int
    staff_member_id: int
    start_date: date
    end_date: date
    category: Optional[str] = None
    reason: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def describe(self) -> str:
        label = self.category or "leave"
        return f"On approved leave: {label}" + (f" - {self.reason}" if self.reason else "")
