import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worklog_ledger"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

REQUIRE_LOCATION = bool(int(os.getenv("REQUIRE_LOCATION", "0")))
MAX_LOCATION_ACCURACY_METERS = float(os.getenv("MAX_LOCATION_ACCURACY_METERS", "500"))
HALF_DAY_THRESHOLD_HOURS = os.getenv("HALF_DAY_THRESHOLD_HOURS", "4")
MISSING_CLOCK_OUT_STATUS = os.getenv("MISSING_CLOCK_OUT_STATUS", "half_day")
LEAVE_PUNCH_POLICY = os.getenv("LEAVE_PUNCH_POLICY", "flag")
