from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.validators import optional_datetime, optional_minutes, require_date, require_positive_int
from ..core.enums import AnomalyFlag, LedgerStatus
from ..core.exceptions import ValidationError
from ..geolocation.model import GeoLocation
from ..metrics.model import TimeMetrics


@dataclass(frozen=True)
class WorkLogEntry:
    """Domain entity: the canonical attendance record of one staff member for one day."""

    entry_id: int
    staff_member_id: int
    log_date: date
    organization_id: int
    company_id: Optional[int]
    status: Optional[LedgerStatus]
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    clock_in_location: Optional[GeoLocation] = None
    clock_out_location: Optional[GeoLocation] = None
    clock_in_ip: Optional[str] = None
    clock_out_ip: Optional[str] = None
    break_minutes: Optional[int] = None
    late_minutes: Optional[int] = None
    early_leave_minutes: Optional[int] = None
    overtime_minutes: Optional[int] = None
    total_hours: Optional[Decimal] = None
    anomaly: Optional[AnomalyFlag] = None
    note: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_reconciled(self) -> bool:
        return self.total_hours is not None

    @property
    def is_finalized(self) -> bool:
        return self.finalized_at is not None

    @property
    def is_open(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    @property
    def metrics(self) -> Optional[TimeMetrics]:
        if not self.is_reconciled:
            return None
        return TimeMetrics(
            late_minutes=int(self.late_minutes or 0),
            early_leave_minutes=int(self.early_leave_minutes or 0),
            overtime_minutes=int(self.overtime_minutes or 0),
            break_minutes=int(self.break_minutes or 0),
            total_hours=self.total_hours,
        )

    def summary(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "log_date": self.log_date.isoformat(),
            "status": self.status.value if self.status else None,
            "clock_in": self.clock_in.isoformat() if self.clock_in else None,
            "clock_out": self.clock_out.isoformat() if self.clock_out else None,
            "total_hours": str(self.total_hours) if self.total_hours is not None else None,
            "late_minutes": self.late_minutes,
            "early_leave_minutes": self.early_leave_minutes,
            "overtime_minutes": self.overtime_minutes,
            "break_minutes": self.break_minutes,
            "anomaly": self.anomaly.value if self.anomaly else None,
        }

    def as_dict(self) -> dict:
        data = self.summary()
        data.update(
            {
                "staff_member_id": self.staff_member_id,
                "organization_id": self.organization_id,
                "company_id": self.company_id,
                "clock_in_location": self.clock_in_location.as_dict() if self.clock_in_location else None,
                "clock_out_location": self.clock_out_location.as_dict() if self.clock_out_location else None,
                "clock_in_ip": self.clock_in_ip,
                "clock_out_ip": self.clock_out_ip,
                "note": self.note,
                "created_by": self.created_by,
                "updated_by": self.updated_by,
                "finalized": self.is_finalized,
            }
        )
        return data


@dataclass(frozen=True)
class DayFacts:
    """Everything the Status Deriver looks at for one staff member and day."""

    is_working_day: bool
    on_approved_leave: bool
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    total_hours: Optional[Decimal] = None
    at_day_close: bool = False

    @property
    def has_punch(self) -> bool:
        return self.clock_in is not None


@dataclass(frozen=True)
class ManualRecord:
    """Attendance for one staff member and day as entered by an administrator.

    Only punch facts are accepted; status and metrics are always derived.
    """

    staff_member_id: int
    log_date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_minutes: Optional[int] = None
    note: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ManualRecord":
        if not isinstance(payload, Mapping):
            raise ValidationError("Each record must be a JSON object")
        note = payload.get("note")
        if note is not None and not isinstance(note, str):
            raise ValidationError("note must be a string")
        return cls(
            staff_member_id=require_positive_int(payload.get("staff_member_id"), "staff_member_id"),
            log_date=require_date(payload.get("log_date"), "log_date"),
            clock_in=optional_datetime(payload.get("clock_in"), "clock_in"),
            clock_out=optional_datetime(payload.get("clock_out"), "clock_out"),
            break_minutes=optional_minutes(payload.get("break_minutes"), "break_minutes"),
            note=note,
        )


@dataclass
class BulkRecordReport:
    recorded: list[int] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"recorded": len(self.recorded), "entry_ids": self.recorded, "failed": self.failed}
