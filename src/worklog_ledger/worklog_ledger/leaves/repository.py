from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import ApprovedLeave


class LeaveDirectory(Protocol):
    """Read-only lookups into the leave subsystem. The ledger never writes leave records."""

    def get_approved_leave(self, staff_member_id: int, day: date) -> Optional[ApprovedLeave]:
        raise NotImplementedError
