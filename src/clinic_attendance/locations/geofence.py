"""Geofence validation: is a GPS fix close enough to the user's work location?"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import now_local
from ..core.config import AttendanceConfig
from ..core.constants import EARTH_RADIUS_METERS
from ..core.enums import ValidationCode
from ..core.exceptions import CacheUnavailableError
from ..core.result import ValidationResult
from ..overrides.service import OverrideService
from ..users.model import User
from .model import WorkLocation
from .repository import WorkLocationRepository

log = logging.getLogger(__name__)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def _location_summary(location: WorkLocation) -> dict[str, Any]:
    return {
        "id": location.location_id,
        "name": location.name,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "radius_meters": location.radius_meters,
    }


class GeofenceValidator:
    def __init__(
        self,
        locations: WorkLocationRepository,
        *,
        config: AttendanceConfig,
        overrides: Optional[OverrideService] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._locations = locations
        self._config = config
        self._overrides = overrides
        self._clock = clock

    def resolve_location(self, user: User, work_location: Optional[WorkLocation] = None) -> Optional[WorkLocation]:
        """Schedule's location, else the user's own, else the first active location."""
        if work_location is not None:
            return work_location
        if user.work_location_id is not None:
            location = self._locations.get_by_id(user.work_location_id)
            if location is not None:
                return location
        return self._locations.first_active()

    def validate(
        self,
        user: User,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        *,
        at: Optional[datetime] = None,
        work_location: Optional[WorkLocation] = None,
        checkout: bool = False,
    ) -> ValidationResult:
        """Check a GPS fix against the resolved work location.

        On checkout a failed check is downgraded to LOCATION_TOLERANCE_APPLIED so an
        already checked-in user can always leave.
        """
        at = at or self._clock()

        override = self._gps_override(user, at)
        if override is not None:
            log.warning("GPS check bypassed by admin override user=%s admin=%s", user.user_id, override.admin_id)
            return ValidationResult.accept(
                ValidationCode.ADMIN_OVERRIDE_ACTIVE,
                f"Validasi lokasi dilewati oleh admin {override.admin_name}: {override.reason}",
                override_reason=override.reason,
                override_admin_id=override.admin_id,
                override_admin_name=override.admin_name,
                override_expires_at=override.expires_at.isoformat(),
            )

        result = self._check(user, latitude, longitude, accuracy, work_location)
        if result.valid or not checkout:
            if not result.valid:
                log.info("Geofence rejected user=%s code=%s", user.user_id, result.code.value)
            return result

        log.info("Geofence failure ignored on checkout user=%s code=%s", user.user_id, result.code.value)
        return ValidationResult.accept(
            ValidationCode.LOCATION_TOLERANCE_APPLIED,
            "Check-out diizinkan dengan toleransi lokasi",
            original_code=result.code.value,
            original_message=result.message,
            **result.data,
        )

    def _gps_override(self, user: User, at: datetime):
        if self._overrides is None:
            return None
        try:
            return self._overrides.get_gps_override(user.user_id, at)
        except CacheUnavailableError:
            log.warning("GPS override store unavailable for user=%s", user.user_id, exc_info=True)
            return None

    def _check(
        self,
        user: User,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        work_location: Optional[WorkLocation],
    ) -> ValidationResult:
        max_accuracy = self._config.max_gps_accuracy_meters
        if accuracy is not None and accuracy > max_accuracy:
            return ValidationResult.reject(
                ValidationCode.GPS_NOT_ACCURATE,
                f"Akurasi GPS terlalu rendah ({accuracy:.0f}m). Maksimal {max_accuracy}m, "
                "coba di area terbuka.",
                accuracy=accuracy,
                max_accuracy=max_accuracy,
            )

        location = self.resolve_location(user, work_location)
        if location is None:
            return ValidationResult.reject(
                ValidationCode.NO_WORK_LOCATION,
                "Lokasi kerja belum ditetapkan. Hubungi admin.",
            )

        if not location.is_active:
            return ValidationResult.reject(
                ValidationCode.WORK_LOCATION_INACTIVE,
                f"Lokasi kerja {location.name} sedang tidak aktif.",
                work_location=_location_summary(location),
            )

        radius = location.radius_meters or self._config.default_location_radius_meters
        distance = haversine_distance(latitude, longitude, location.latitude, location.longitude)
        if distance > radius:
            shortfall = distance - radius
            return ValidationResult.reject(
                ValidationCode.OUTSIDE_WORK_AREA,
                f"Anda berada {distance:.0f}m dari {location.name}, di luar radius {radius}m "
                f"(kelebihan {shortfall:.0f}m).",
                distance=round(distance, 2),
                allowed_radius=radius,
                shortfall=round(shortfall, 2),
                work_location=_location_summary(location),
            )

        return ValidationResult.accept(
            ValidationCode.VALID_LOCATION,
            f"Lokasi valid ({distance:.0f}m dari {location.name})",
            distance=round(distance, 2),
            allowed_radius=radius,
            work_location=_location_summary(location),
        )
