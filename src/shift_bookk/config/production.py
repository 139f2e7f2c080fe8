import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "shift_bookk"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_bookk"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = False

MIN_SHIFT_HOURS = float(os.getenv("MIN_SHIFT_HOURS", "0.5"))
MAX_SHIFT_HOURS = float(os.getenv("MAX_SHIFT_HOURS", "16"))
ALLOW_SHIFT_OVERLAP = bool(int(os.getenv("ALLOW_SHIFT_OVERLAP", "0")))
MAX_TIME_OFF_DAYS = int(os.getenv("MAX_TIME_OFF_DAYS", "30"))

POLL_TIMEOUT_SECONDS = int(os.getenv("POLL_TIMEOUT_SECONDS", "25"))
