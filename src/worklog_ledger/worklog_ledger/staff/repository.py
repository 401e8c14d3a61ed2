from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import ShiftWindow, StaffMember, TenancyContext


class StaffRegistry(Protocol):
    """Read-only view of the staff/organization registry."""

    def get_by_id(self, staff_member_id: int) -> Optional[StaffMember]:
        raise NotImplementedError

    def get_tenancy_context(self, staff_member_id: int) -> Optional[TenancyContext]:
        raise NotImplementedError

    def get_shift_window(self, staff_member_id: int, work_date: date) -> Optional[ShiftWindow]:
        """Shift scheduled for the day, falling back to the default shift."""

        raise NotImplementedError

    def list_active(self, *, organization_id: int, company_id: Optional[int] = None) -> Sequence[StaffMember]:
        raise NotImplementedError
