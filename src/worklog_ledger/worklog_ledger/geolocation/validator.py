from __future__ import annotations

import logging
import math
from typing import Any, Optional

from ..core.constants import LATITUDE_RANGE, LONGITUDE_RANGE
from ..core.exceptions import InvalidLocation, LocationUnavailable
from ..core.policy import LedgerPolicy
from .model import GeoLocation, LocationReading

logger = logging.getLogger(__name__)


def _as_coordinate(value: Any, field_name: str) -> float:
    # bool is an int subclass; a JSON true is not a coordinate.
    if isinstance(value, bool):
        raise InvalidLocation(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidLocation(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise InvalidLocation(f"{field_name} must be finite")
    return number


def validate_location(reading: Optional[LocationReading], *, max_accuracy_meters: float) -> GeoLocation:
    """Validate and normalize a punch location.

    Raises LocationUnavailable when nothing was reported and InvalidLocation
    when something was reported but cannot be used.
    """

    if reading is None or reading.is_empty:
        raise LocationUnavailable("No location was reported for this punch")

    if reading.latitude is None or reading.longitude is None:
        raise InvalidLocation("latitude and longitude must be reported together")

    latitude = _as_coordinate(reading.latitude, "latitude")
    longitude = _as_coordinate(reading.longitude, "longitude")

    lat_min, lat_max = LATITUDE_RANGE
    if not lat_min <= latitude <= lat_max:
        raise InvalidLocation(f"latitude must be between {lat_min:g} and {lat_max:g}")
    lon_min, lon_max = LONGITUDE_RANGE
    if not lon_min <= longitude <= lon_max:
        raise InvalidLocation(f"longitude must be between {lon_min:g} and {lon_max:g}")

    accuracy: Optional[float] = None
    if reading.accuracy is not None:
        accuracy = _as_coordinate(reading.accuracy, "accuracy")
        if accuracy < 0:
            raise InvalidLocation("accuracy must not be negative")
        if accuracy > max_accuracy_meters:
            raise InvalidLocation(f"accuracy of {accuracy:g}m exceeds the {max_accuracy_meters:g}m limit")

    return GeoLocation(latitude=latitude, longitude=longitude, accuracy_meters=accuracy)


def resolve_punch_location(reading: Optional[LocationReading], *, policy: LedgerPolicy) -> Optional[GeoLocation]:
    """Apply the require_location policy on top of validate_location.

    A missing or unusable location only blocks the punch when location is
    required; otherwise the punch goes ahead without one.
    """

    try:
        return validate_location(reading, max_accuracy_meters=policy.max_accuracy_meters)
    except LocationUnavailable:
        if policy.require_location:
            raise
        logger.debug("Punch submitted without a location")
        return None
    except InvalidLocation as e:
        if policy.require_location:
            logger.warning("Rejected punch location: %s", e)
            raise
        logger.warning("Dropped unusable punch location: %s", e)
        return None
