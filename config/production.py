import os

from .base import ATTENDANCE as _BASE_ATTENDANCE
from .base import CACHE_URL, DB_CONFIG, LOG_LEVEL

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

ATTENDANCE = dict(_BASE_ATTENDANCE, production_mode=True)
