from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class WorkLocation:
    """Domain entity: a clinic site with its geofence and fallback tolerance fields."""

    location_id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: Optional[int] = None
    is_active: bool = True

    # Flat tolerance columns.
    checkin_before_shift_minutes: Optional[int] = None
    late_tolerance_minutes: Optional[int] = None
    early_departure_tolerance_minutes: Optional[int] = None
    checkout_after_shift_minutes: Optional[int] = None

    # Admin settings blob; its keys mirror the flat columns and win over them.
    tolerance_settings: dict[str, Any] = field(default_factory=dict)

    def tolerance_minutes(self, key: str) -> Optional[int]:
        nested = self.tolerance_settings.get(key) if self.tolerance_settings else None
        if nested is not None:
            return int(nested)
        flat = getattr(self, key, None)
        return int(flat) if flat is not None else None
