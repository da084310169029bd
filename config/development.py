import os

from .base import ATTENDANCE as _BASE_ATTENDANCE
from .base import CACHE_URL, DB_CONFIG, LOG_LEVEL

DEBUG = True

# Applies database/schema.sql on startup (idempotent: CREATE TABLE IF NOT EXISTS).
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Development ignores the "not open yet" check-in window when picking a shift.
ATTENDANCE = dict(_BASE_ATTENDANCE, production_mode=os.getenv("ATTENDANCE_PRODUCTION_MODE", "0"))
