import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_bookk"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Apply database/schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Also upsert demo directory users
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

MIN_SHIFT_HOURS = float(os.getenv("MIN_SHIFT_HOURS", "0.5"))
MAX_SHIFT_HOURS = float(os.getenv("MAX_SHIFT_HOURS", "16"))
ALLOW_SHIFT_OVERLAP = bool(int(os.getenv("ALLOW_SHIFT_OVERLAP", "0")))
MAX_TIME_OFF_DAYS = int(os.getenv("MAX_TIME_OFF_DAYS", "30"))

POLL_TIMEOUT_SECONDS = int(os.getenv("POLL_TIMEOUT_SECONDS", "25"))
