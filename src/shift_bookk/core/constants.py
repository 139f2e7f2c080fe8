"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MIN_SHIFT_HOURS = 0.5
DEFAULT_MAX_SHIFT_HOURS = 16
DEFAULT_MAX_TIME_OFF_DAYS = 30
DEFAULT_LIST_LIMIT = 200
DEFAULT_POLL_TIMEOUT_SECONDS = 25
MAX_RECURRENCE_OCCURRENCES = 366
