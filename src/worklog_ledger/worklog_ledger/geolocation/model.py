from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class GeoLocation:
    """Validated device coordinates of a punch."""

    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_meters": self.accuracy_meters,
        }


@dataclass(frozen=True)
class LocationReading:
    """Raw location as submitted by a client, before validation."""

    latitude: Any = None
    longitude: Any = None
    accuracy: Any = None

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> Optional["LocationReading"]:
        if not payload:
            return None
        return cls(
            latitude=payload.get("latitude"),
            longitude=payload.get("longitude"),
            accuracy=payload.get("accuracy", payload.get("accuracy_meters")),
        )

    @property
    def is_empty(self) -> bool:
        return self.latitude is None and self.longitude is None and self.accuracy is None
