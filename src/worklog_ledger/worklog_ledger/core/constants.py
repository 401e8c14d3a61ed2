"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_MAX_LOCATION_ACCURACY_METERS = 500.0
DEFAULT_HALF_DAY_THRESHOLD_HOURS = Decimal("4")

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

HOURS_QUANTUM = Decimal("0.01")
