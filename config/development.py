import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "worklog_ledger"),
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Ledger policy
REQUIRE_LOCATION = bool(int(os.getenv("REQUIRE_LOCATION", "0")))
MAX_LOCATION_ACCURACY_METERS = float(os.getenv("MAX_LOCATION_ACCURACY_METERS", "500"))
HALF_DAY_THRESHOLD_HOURS = os.getenv("HALF_DAY_THRESHOLD_HOURS", "4")
MISSING_CLOCK_OUT_STATUS = os.getenv("MISSING_CLOCK_OUT_STATUS", "half_day")
LEAVE_PUNCH_POLICY = os.getenv("LEAVE_PUNCH_POLICY", "flag")
