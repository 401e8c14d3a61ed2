import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worklog_ledger_test"),
    "pool_size": 1,
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

REQUIRE_LOCATION = False
MAX_LOCATION_ACCURACY_METERS = 500.0
HALF_DAY_THRESHOLD_HOURS = "4"
MISSING_CLOCK_OUT_STATUS = "half_day"
LEAVE_PUNCH_POLICY = "flag"
