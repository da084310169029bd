import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "clinic_attendance"),
}

# Empty means the in-process cache (fine for a single worker).
CACHE_URL = os.getenv("CACHE_URL", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "")

# Recognised attendance options; see AttendanceConfig for types and defaults.
ATTENDANCE = {
    "max_shifts_per_day": int(os.getenv("ATTENDANCE_MAX_SHIFTS_PER_DAY", "3")),
    "min_gap_between_shifts_minutes": int(os.getenv("ATTENDANCE_MIN_GAP_MINUTES", "60")),
    "max_gap_between_shifts_minutes": int(os.getenv("ATTENDANCE_MAX_GAP_MINUTES", "720")),
    "overtime_after_shifts": int(os.getenv("ATTENDANCE_OVERTIME_AFTER_SHIFTS", "2")),
    "max_gps_accuracy_meters": int(os.getenv("ATTENDANCE_MAX_GPS_ACCURACY", "50")),
    "default_location_radius_meters": int(os.getenv("ATTENDANCE_DEFAULT_RADIUS", "100")),
    "checkin_tolerance_early": int(os.getenv("ATTENDANCE_CHECKIN_TOLERANCE_EARLY", "30")),
    "checkin_tolerance_late": int(os.getenv("ATTENDANCE_CHECKIN_TOLERANCE_LATE", "60")),
    "checkout_tolerance_early": int(os.getenv("ATTENDANCE_CHECKOUT_TOLERANCE_EARLY", "30")),
    "checkout_tolerance_late": int(os.getenv("ATTENDANCE_CHECKOUT_TOLERANCE_LATE", "60")),
    "multishift_enabled": os.getenv("ATTENDANCE_MULTISHIFT_ENABLED", "1"),
    "allowed_roles": os.getenv("ATTENDANCE_ALLOWED_ROLES") or None,
    "default_shift_template_id": int(os.getenv("ATTENDANCE_DEFAULT_SHIFT_TEMPLATE_ID", "14")),
    "tolerance_cache_ttl_seconds": int(os.getenv("ATTENDANCE_TOLERANCE_CACHE_TTL", "300")),
}
