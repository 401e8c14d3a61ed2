from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import ValidationError
from .model import WEEKDAY_FIELDS, WorkingDaysConfig
from .repository import WorkingDaysRepository

logger = logging.getLogger(__name__)


class WorkingDaysService:
    """Settings-side management of working-day configs and holidays."""

    def __init__(self, working_days: WorkingDaysRepository):
        self._working_days = working_days

    def list_configs(self, *, organization_id: int, company_id: Optional[int] = None) -> Sequence[WorkingDaysConfig]:
        return self._working_days.list_configs(organization_id=organization_id, company_id=company_id)

    def create_config(
        self,
        *,
        organization_id: int,
        company_id: Optional[int],
        pattern: dict[str, bool],
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> int:
        unknown = set(pattern) - set(WEEKDAY_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown weekday fields: {', '.join(sorted(unknown))}")
        if from_date and to_date and to_date < from_date:
            raise ValidationError("to_date must be on or after from_date")

        same_scope = [
            c
            for c in self._working_days.list_configs(organization_id=organization_id, company_id=company_id)
            if c.company_id == company_id
        ]

        if from_date is None and to_date is None:
            if any(not c.is_windowed for c in same_scope):
                raise ValidationError("A default working days configuration already exists for this scope")
        else:
            if any(c.from_date is not None and c.to_date is None for c in same_scope):
                raise ValidationError(
                    "There is an existing working days configuration without an end date. "
                    "Close it by setting a to_date before creating a new one."
                )
            clash = next((c for c in same_scope if c.is_windowed and c.overlaps(from_date, to_date)), None)
            if clash:
                raise ValidationError(f"Date range overlaps working days configuration #{clash.config_id}")

        full_pattern = {name: bool(pattern.get(name, name not in ("saturday", "sunday"))) for name in WEEKDAY_FIELDS}
        config_id = self._working_days.create_config(
            organization_id=organization_id,
            company_id=company_id,
            pattern=full_pattern,
            from_date=from_date,
            to_date=to_date,
        )
        logger.info(
            "Created working days config %s (organization=%s company=%s window=%s..%s)",
            config_id,
            organization_id,
            company_id,
            from_date,
            to_date,
        )
        return config_id

    def add_holiday(self, *, organization_id: int, company_id: Optional[int], holiday_date: date, name: str) -> int:
        name = require_non_empty(name, "name")
        return self._working_days.create_holiday(
            organization_id=organization_id,
            company_id=company_id,
            holiday_date=holiday_date,
            name=name,
        )
