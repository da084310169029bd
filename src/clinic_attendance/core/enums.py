from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Clinic roles used for attendance permission checks."""

    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    MANAJER = "manajer"
    BENDAHARA = "bendahara"
    PETUGAS = "petugas"
    DOKTER = "dokter"
    DOKTER_GIGI = "dokter-gigi"
    PERAWAT = "perawat"
    BIDAN = "bidan"
    ANALIS = "analis"
    PARAMEDIS = "paramedis"
    PARAMEDIS_LAINNYA = "paramedis-lainnya"
    NONPARAMEDIS = "nonparamedis"


class AttendanceAction(str, Enum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"


class ToleranceScope(str, Enum):
    GLOBAL = "global"
    ROLE = "role"
    USER = "user"


class ToleranceSource(str, Enum):
    """Which layer produced a resolved tolerance."""

    OVERRIDE = "override"
    USER = "user"
    ROLE = "role"
    GLOBAL = "global"
    WORK_LOCATION = "work_location"
    DEFAULT = "default"


class ScheduleStatus(str, Enum):
    AKTIF = "aktif"
    CUTI = "cuti"
    ON_CALL = "oncall"
    IZIN = "izin"
    COMPLETED = "completed"


class ViolationType(str, Enum):
    EARLY_CHECKIN = "early_checkin"
    LATE_CHECKIN = "late_checkin"
    EARLY_CHECKOUT = "early_checkout"
    LATE_CHECKOUT = "late_checkout"
    MISSING_CHECKOUT = "missing_checkout"


class ViolationSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"


class ValidationCode(str, Enum):
    """Stable machine-readable codes carried by every validation result."""

    VALID = "VALID"
    VALID_BUT_LATE = "VALID_BUT_LATE"
    VALID_SCHEDULE = "VALID_SCHEDULE"
    VALID_LOCATION = "VALID_LOCATION"
    VALID_CHECKOUT = "VALID_CHECKOUT"
    VALID_CHECKOUT_NO_END_TIME = "VALID_CHECKOUT_NO_END_TIME"
    CHECKOUT_ALLOWED = "CHECKOUT_ALLOWED"

    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    MAX_SHIFTS_REACHED = "MAX_SHIFTS_REACHED"
    SHIFT_GAP_TOO_SHORT = "SHIFT_GAP_TOO_SHORT"
    SHIFT_GAP_TOO_LONG = "SHIFT_GAP_TOO_LONG"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_NOT_ALLOWED = "USER_NOT_ALLOWED"

    NO_SCHEDULE = "NO_SCHEDULE"
    SCHEDULE_INACTIVE = "SCHEDULE_INACTIVE"
    NO_AVAILABLE_SHIFT = "NO_AVAILABLE_SHIFT"
    ALL_SHIFTS_COMPLETED = "ALL_SHIFTS_COMPLETED"

    TOO_EARLY = "TOO_EARLY"
    TOO_LATE = "TOO_LATE"

    GPS_NOT_ACCURATE = "GPS_NOT_ACCURATE"
    NO_WORK_LOCATION = "NO_WORK_LOCATION"
    WORK_LOCATION_INACTIVE = "WORK_LOCATION_INACTIVE"
    OUTSIDE_WORK_AREA = "OUTSIDE_WORK_AREA"
    ADMIN_OVERRIDE_ACTIVE = "ADMIN_OVERRIDE_ACTIVE"
    LOCATION_TOLERANCE_APPLIED = "LOCATION_TOLERANCE_APPLIED"

    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKOUT_TOO_EARLY = "CHECKOUT_TOO_EARLY"
    CHECKOUT_VERY_LATE = "CHECKOUT_VERY_LATE"
