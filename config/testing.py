import os

from .base import ATTENDANCE as _BASE_ATTENDANCE
from .base import DB_CONFIG, LOG_LEVEL

DEBUG = False
TESTING = True

# Tests never reach Redis.
CACHE_URL = ""

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

ATTENDANCE = dict(_BASE_ATTENDANCE, production_mode=True)
