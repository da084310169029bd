"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MINUTES_PER_DAY = 1440
NOON_MINUTES = 720

EARTH_RADIUS_METERS = 6371000

DEFAULT_MAX_SHIFTS_PER_DAY = 3
DEFAULT_MIN_GAP_BETWEEN_SHIFTS_MINUTES = 60
DEFAULT_MAX_GAP_BETWEEN_SHIFTS_MINUTES = 720
DEFAULT_OVERTIME_AFTER_SHIFTS = 2
DEFAULT_MAX_GPS_ACCURACY_METERS = 50
DEFAULT_LOCATION_RADIUS_METERS = 100
DEFAULT_SHIFT_TEMPLATE_ID = 14
DEFAULT_TOLERANCE_CACHE_TTL_SECONDS = 300

# Used when a schedule has no usable shift template at all.
FALLBACK_SHIFT_START = "08:00"
FALLBACK_SHIFT_END = "16:00"

# Records closed by the sweep keep exactly this much logical work time.
PENALTY_WORK_MINUTES = 1

# Open records without a stored shift end are assumed to run this long.
DEFAULT_SHIFT_LENGTH_HOURS = 8

DEFAULT_ALLOWED_ROLES = (
    "perawat",
    "bidan",
    "analis",
    "paramedis",
    "paramedis-lainnya",
    "nonparamedis",
    "petugas",
    "dokter",
    "dokter-gigi",
)

ADMIN_ROLES = ("admin", "super-admin")
