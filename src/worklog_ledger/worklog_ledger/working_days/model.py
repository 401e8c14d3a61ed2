from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

WEEKDAY_FIELDS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class WorkingDaysConfig:
    """Weekly working pattern for an organization or one of its companies.

    ``company_id`` None means organization scope. A config without a validity
    window is the scope-wide default.
    """

    config_id: int
    organization_id: int
    company_id: Optional[int]
    monday: bool = True
    tuesday: bool = True
    wednesday: bool = True
    thursday: bool = True
    friday: bool = True
    saturday: bool = False
    sunday: bool = False
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    @property
    def is_windowed(self) -> bool:
        return self.from_date is not None or self.to_date is not None

    def window_contains(self, day: date) -> bool:
        if self.from_date and day < self.from_date:
            return False
        if self.to_date and day > self.to_date:
            return False
        return True

    def works_on(self, day: date) -> bool:
        return bool(getattr(self, WEEKDAY_FIELDS[day.weekday()]))

    def overlaps(self, from_date: Optional[date], to_date: Optional[date]) -> bool:
        # Open ends stretch to infinity on their side.
        starts_before_other_ends = self.from_date is None or to_date is None or self.from_date <= to_date
        ends_after_other_starts = self.to_date is None or from_date is None or self.to_date >= from_date
        return starts_before_other_ends and ends_after_other_starts

    def pattern(self) -> dict[str, bool]:
        return {name: bool(getattr(self, name)) for name in WEEKDAY_FIELDS}


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    organization_id: int
    company_id: Optional[int]
    holiday_date: date
    name: str
