from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AnomalyFlag, LedgerStatus
from ..geolocation.model import GeoLocation
from ..metrics.model import TimeMetrics
from .model import WorkLogEntry


class LedgerRepository(Protocol):
    """Storage of work log entries.

    Every read excludes soft-deleted rows. Inserts raise DuplicateLedgerEntry
    when a live row already exists for (staff_member_id, log_date); the
    conditional updates return False when their precondition no longer holds,
    so concurrent writers cannot both win.
    """

    def get_by_id(self, entry_id: int) -> Optional[WorkLogEntry]:
        raise NotImplementedError

    def get_for_staff_and_date(self, staff_member_id: int, log_date: date) -> Optional[WorkLogEntry]:
        raise NotImplementedError

    def insert_clock_in(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        clock_in: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        note: Optional[str],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def claim_for_clock_in(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        note: Optional[str],
        updated_by: Optional[int],
    ) -> bool:
        """Set clock_in on a marker row that has none yet; derived fields are cleared."""

        raise NotImplementedError

    def record_clock_out(
        self,
        *,
        entry_id: int,
        clock_out: datetime,
        location: Optional[GeoLocation],
        source_ip: Optional[str],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        """Only applies while clock_in is set and clock_out is not."""

        raise NotImplementedError

    def insert_marker(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        status: LedgerStatus,
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def insert_recorded(
        self,
        *,
        staff_member_id: int,
        log_date: date,
        organization_id: int,
        company_id: Optional[int],
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        created_by: Optional[int],
    ) -> int:
        """Insert a finalized entry recorded by an administrator."""

        raise NotImplementedError

    def fill_marker(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        """Record punch times on a marker row; only applies while clock_in is not set."""

        raise NotImplementedError

    def finalize(
        self,
        *,
        entry_id: int,
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        """Only applies while the entry is not finalized and still has no clock_out."""

        raise NotImplementedError

    def apply_correction(
        self,
        *,
        entry_id: int,
        clock_in: datetime,
        clock_out: Optional[datetime],
        status: LedgerStatus,
        anomaly: Optional[AnomalyFlag],
        metrics: TimeMetrics,
        note: Optional[str],
        finalized_at: datetime,
        updated_by: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def soft_delete(self, *, entry_id: int, deleted_at: datetime, deleted_by: Optional[int]) -> bool:
        raise NotImplementedError

    def list_for_period(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        staff_member_id: Optional[int] = None,
        company_id: Optional[int] = None,
    ) -> Sequence[WorkLogEntry]:
        raise NotImplementedError
