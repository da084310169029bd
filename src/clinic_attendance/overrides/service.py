from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Callable, Optional

from ..cache.store import CacheStore
from ..common.datetime_utils import end_of_day, now_local
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.model import User
from .model import GpsOverride, ToleranceOverride

log = logging.getLogger(__name__)


def tolerance_override_key(user_id: int, day: date) -> str:
    return f"tolerance_override_{user_id}_{day.isoformat()}"


def gps_override_key(user_id: int, day: date) -> str:
    return f"gps_override_{user_id}_{day.isoformat()}"


class OverrideService:
    """Day-scoped admin overrides kept in the cache store.

    Overrides expire at the end of the day they were issued; an expired payload found in the
    store is discarded on read.
    """

    def __init__(self, cache: CacheStore, *, clock: Callable[[], datetime] = now_local):
        self._cache = cache
        self._clock = clock

    @staticmethod
    def _require_admin(admin: User) -> None:
        if not admin.is_admin:
            raise AuthorizationError("Hanya administrator yang dapat membuat override presensi")

    @staticmethod
    def _ttl_until(expires_at: datetime, now: datetime) -> int:
        return max(1, math.ceil((expires_at - now).total_seconds()))

    def create_tolerance_override(
        self,
        admin: User,
        target: User,
        *,
        checkin_early: Optional[int] = None,
        checkin_late: Optional[int] = None,
        checkout_early: Optional[int] = None,
        checkout_late: Optional[int] = None,
        reason: str = "",
    ) -> ToleranceOverride:
        self._require_admin(admin)
        minutes = (checkin_early, checkin_late, checkout_early, checkout_late)
        if all(m is None for m in minutes):
            raise ValidationError("Override toleransi harus berisi minimal satu nilai menit")
        if any(m is not None and int(m) < 0 for m in minutes):
            raise ValidationError("Nilai toleransi tidak boleh negatif")

        now = self._clock()
        override = ToleranceOverride(
            user_id=target.user_id,
            admin_id=admin.user_id,
            admin_name=admin.name,
            work_date=now.date(),
            created_at=now,
            expires_at=end_of_day(now.date()),
            checkin_early=checkin_early,
            checkin_late=checkin_late,
            checkout_early=checkout_early,
            checkout_late=checkout_late,
            reason=reason,
        )
        self._cache.put(
            tolerance_override_key(target.user_id, now.date()),
            override.to_payload(),
            self._ttl_until(override.expires_at, now),
        )
        log.info("Tolerance override created admin=%s user=%s minutes=%s", admin.user_id, target.user_id, minutes)
        return override

    def get_tolerance_override(self, user_id: int, at: Optional[datetime] = None) -> Optional[ToleranceOverride]:
        at = at or self._clock()
        key = tolerance_override_key(user_id, at.date())
        payload = self._cache.get(key)
        if not payload:
            return None
        override = ToleranceOverride.from_payload(payload)
        if override.expires_at < at:
            self._cache.forget(key)
            return None
        return override

    def revoke_tolerance_override(self, user_id: int, day: date) -> None:
        self._cache.forget(tolerance_override_key(user_id, day))

    def create_gps_override(
        self,
        admin: User,
        target: User,
        *,
        latitude: float,
        longitude: float,
        reason: str,
    ) -> GpsOverride:
        self._require_admin(admin)
        if not reason or not reason.strip():
            raise ValidationError("Alasan override GPS wajib diisi")

        now = self._clock()
        override = GpsOverride(
            user_id=target.user_id,
            admin_id=admin.user_id,
            admin_name=admin.name,
            work_date=now.date(),
            latitude=float(latitude),
            longitude=float(longitude),
            reason=reason.strip(),
            created_at=now,
            expires_at=end_of_day(now.date()),
        )
        self._cache.put(
            gps_override_key(target.user_id, now.date()),
            override.to_payload(),
            self._ttl_until(override.expires_at, now),
        )
        log.warning(
            "Admin GPS override created admin=%s user=%s reason=%s", admin.user_id, target.user_id, override.reason
        )
        return override

    def get_gps_override(self, user_id: int, at: Optional[datetime] = None) -> Optional[GpsOverride]:
        at = at or self._clock()
        key = gps_override_key(user_id, at.date())
        payload = self._cache.get(key)
        if not payload:
            return None
        override = GpsOverride.from_payload(payload)
        if override.expires_at < at:
            self._cache.forget(key)
            return None
        return override

    def revoke_gps_override(self, user_id: int, day: date) -> None:
        self._cache.forget(gps_override_key(user_id, day))
