from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class TenancyContext:
    """The (organization, company) pair scoping ledger data."""

    organization_id: int
    company_id: Optional[int] = None


@dataclass(frozen=True)
class ShiftWindow:
    """Expected start/end of a staff member's working day."""

    shift_start: time
    shift_end: time
    break_minutes: int = 0
    shift_name: Optional[str] = None
    overtime_after_hours: Optional[Decimal] = None

    @property
    def crosses_midnight(self) -> bool:
        return self.shift_end <= self.shift_start


@dataclass(frozen=True)
class StaffMember:
    staff_member_id: int
    full_name: str
    organization_id: int
    company_id: Optional[int]
    is_active: bool = True

    @property
    def tenancy(self) -> TenancyContext:
        return TenancyContext(organization_id=self.organization_id, company_id=self.company_id)
