import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_bookk_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

MIN_SHIFT_HOURS = 0.5
MAX_SHIFT_HOURS = 16
ALLOW_SHIFT_OVERLAP = False
MAX_TIME_OFF_DAYS = 30

POLL_TIMEOUT_SECONDS = 0
