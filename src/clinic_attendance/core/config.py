from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from . import constants


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class AttendanceConfig:
    """Recognised attendance options (the ``ATTENDANCE`` block of a settings module)."""

    max_shifts_per_day: int = constants.DEFAULT_MAX_SHIFTS_PER_DAY
    min_gap_between_shifts_minutes: int = constants.DEFAULT_MIN_GAP_BETWEEN_SHIFTS_MINUTES
    max_gap_between_shifts_minutes: int = constants.DEFAULT_MAX_GAP_BETWEEN_SHIFTS_MINUTES
    overtime_after_shifts: int = constants.DEFAULT_OVERTIME_AFTER_SHIFTS
    max_gps_accuracy_meters: int = constants.DEFAULT_MAX_GPS_ACCURACY_METERS
    default_location_radius_meters: int = constants.DEFAULT_LOCATION_RADIUS_METERS

    # Legacy tolerance defaults (config fallback used by the sweep and the public resolver).
    checkin_tolerance_early: int = 30
    checkin_tolerance_late: int = 60
    checkout_tolerance_early: int = 30
    checkout_tolerance_late: int = 60

    multishift_enabled: bool = True
    allowed_roles: tuple[str, ...] = constants.DEFAULT_ALLOWED_ROLES
    default_shift_template_id: Optional[int] = constants.DEFAULT_SHIFT_TEMPLATE_ID
    production_mode: bool = True
    tolerance_cache_ttl_seconds: int = constants.DEFAULT_TOLERANCE_CACHE_TTL_SECONDS

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "AttendanceConfig":
        if not mapping:
            return cls()

        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in mapping or mapping[f.name] is None:
                continue
            raw = mapping[f.name]
            if f.name == "allowed_roles":
                if isinstance(raw, str):
                    raw = [r.strip() for r in raw.split(",") if r.strip()]
                values[f.name] = tuple(str(r) for r in raw)
            elif f.name in {"multishift_enabled", "production_mode"}:
                values[f.name] = _as_bool(raw)
            else:
                values[f.name] = int(raw)
        return cls(**values)
