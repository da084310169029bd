from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..cache.store import CacheStore
from ..common.datetime_utils import is_weekend, minutes_until, now_local
from ..core.constants import DEFAULT_TOLERANCE_CACHE_TTL_SECONDS
from ..core.enums import AttendanceAction, ToleranceScope, ToleranceSource, ValidationCode
from ..core.exceptions import CacheUnavailableError, StorageUnavailableError
from ..core.result import ValidationResult
from ..locations.model import WorkLocation
from ..locations.repository import WorkLocationRepository
from ..overrides.service import OverrideService
from ..users.model import User
from .model import SCHEDULE_DEFAULTS, ToleranceDefaults, ToleranceResult, ToleranceSetting
from .repository import HolidayCalendar, NoHolidays, ToleranceSettingRepository

log = logging.getLogger(__name__)

# Work-location columns holding (early, late) minutes for each action.
_LOCATION_FIELDS = {
    AttendanceAction.CHECKIN: ("checkin_before_shift_minutes", "late_tolerance_minutes"),
    AttendanceAction.CHECKOUT: ("early_departure_tolerance_minutes", "checkout_after_shift_minutes"),
}


def settings_cache_key(user_id: int) -> str:
    return f"tolerance_settings_user_{user_id}"


class ToleranceResolver:
    """Resolve early/late tolerance minutes for a user and action.

    Priority, first hit wins:
    day-scoped admin override > user setting > role setting > global setting >
    the user's work location > hard defaults.

    The setting lookup (user/role/global) is cached per user for a few minutes. Cache and
    settings-store failures never fail a resolution; they degrade to the next layer.
    """

    def __init__(
        self,
        settings: ToleranceSettingRepository,
        locations: WorkLocationRepository,
        cache: CacheStore,
        *,
        overrides: Optional[OverrideService] = None,
        holidays: Optional[HolidayCalendar] = None,
        defaults: ToleranceDefaults = SCHEDULE_DEFAULTS,
        cache_ttl_seconds: int = DEFAULT_TOLERANCE_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._settings = settings
        self._locations = locations
        self._cache = cache
        self._overrides = overrides
        self._holidays = holidays or NoHolidays()
        self._defaults = defaults
        self._ttl = int(cache_ttl_seconds)
        self._clock = clock

    @property
    def defaults(self) -> ToleranceDefaults:
        return self._defaults

    def resolve(
        self,
        user: User,
        action: AttendanceAction,
        at: Optional[datetime] = None,
        *,
        work_location: Optional[WorkLocation] = None,
    ) -> ToleranceResult:
        at = at or self._clock()
        weekend = is_weekend(at.date())
        holiday = self._is_holiday(at)

        result = (
            self._from_override(user, action, at)
            or self._from_setting(user, action, weekend, holiday)
            or self._from_location(user, action, work_location)
            or self._from_defaults(action)
        )
        result = replace(result, is_weekend=weekend, is_holiday=holiday)
        log.info(
            "Tolerance resolved user=%s action=%s source=%s source_id=%s early=%s late=%s",
            user.user_id,
            action.value,
            result.source.value,
            result.source_id,
            result.early_minutes,
            result.late_minutes,
        )
        return result

    def _is_holiday(self, at: datetime) -> bool:
        try:
            return bool(self._holidays.is_holiday(at.date()))
        except StorageUnavailableError:
            log.warning("Holiday calendar unavailable, treating %s as a working day", at.date(), exc_info=True)
            return False

    def _from_override(self, user: User, action: AttendanceAction, at: datetime) -> Optional[ToleranceResult]:
        if self._overrides is None:
            return None
        try:
            override = self._overrides.get_tolerance_override(user.user_id, at)
        except CacheUnavailableError:
            log.warning("Override store unavailable for user=%s, skipping overrides", user.user_id, exc_info=True)
            return None
        if override is None:
            return None

        early, late = override.minutes_for(action)
        default_early, default_late = self._defaults.for_action(action)
        return ToleranceResult(
            action=action,
            early_minutes=int(early) if early is not None else default_early,
            late_minutes=int(late) if late is not None else default_late,
            source=ToleranceSource.OVERRIDE,
            source_id=override.admin_id,
            source_name=override.reason or None,
        )

    def _from_setting(
        self, user: User, action: AttendanceAction, weekend: bool, holiday: bool
    ) -> Optional[ToleranceResult]:
        setting = self.setting_for_user(user)
        if setting is None:
            return None

        early, late = setting.tolerance_for(action, is_weekend=weekend, is_holiday=holiday)
        default_early, default_late = self._defaults.for_action(action)
        return ToleranceResult(
            action=action,
            early_minutes=int(early) if early is not None else default_early,
            late_minutes=int(late) if late is not None else default_late,
            source=ToleranceSource(setting.scope.value),
            source_id=setting.setting_id,
            source_name=setting.setting_name,
            allow_early=setting.allows(action, early=True),
            allow_late=setting.allows(action, early=False),
            allow_emergency_override=setting.allow_emergency_override,
        )

    def setting_for_user(self, user: User) -> Optional[ToleranceSetting]:
        """Highest-priority active setting for the user (user > role > global), cached."""
        key = settings_cache_key(user.user_id)
        try:
            cached = self._cache.get(key)
        except CacheUnavailableError:
            log.warning("Tolerance cache unavailable for user=%s", user.user_id, exc_info=True)
            cached = None
        if cached is not None:
            payload = cached.get("setting")
            return ToleranceSetting.from_payload(payload) if payload else None

        try:
            setting = self._lookup_setting(user)
        except StorageUnavailableError:
            log.warning("Tolerance settings store unavailable for user=%s", user.user_id, exc_info=True)
            return None

        try:
            self._cache.put(key, {"setting": setting.to_payload() if setting else None}, self._ttl)
        except CacheUnavailableError:
            log.warning("Could not cache tolerance setting for user=%s", user.user_id, exc_info=True)
        return setting

    def _lookup_setting(self, user: User) -> Optional[ToleranceSetting]:
        lookups = (
            (ToleranceScope.USER, str(user.user_id)),
            (ToleranceScope.ROLE, user.role),
            (ToleranceScope.GLOBAL, None),
        )
        for scope, value in lookups:
            setting = self._settings.first_active_for_scope(scope, value)
            if setting is not None:
                log.info(
                    "Using %s tolerance setting user=%s setting_id=%s name=%s",
                    scope.value,
                    user.user_id,
                    setting.setting_id,
                    setting.setting_name,
                )
                return setting

        log.warning("No tolerance setting found for user=%s role=%s", user.user_id, user.role)
        return None

    def _from_location(
        self, user: User, action: AttendanceAction, work_location: Optional[WorkLocation]
    ) -> Optional[ToleranceResult]:
        location = work_location
        if location is None and user.work_location_id is not None:
            try:
                location = self._locations.get_by_id(user.work_location_id)
            except StorageUnavailableError:
                log.warning("Work location store unavailable for user=%s", user.user_id, exc_info=True)
                return None
        if location is None:
            return None

        early_field, late_field = _LOCATION_FIELDS[action]
        early = location.tolerance_minutes(early_field)
        late = location.tolerance_minutes(late_field)
        if early is None and late is None:
            return None

        default_early, default_late = self._defaults.for_action(action)
        return ToleranceResult(
            action=action,
            early_minutes=early if early is not None else default_early,
            late_minutes=late if late is not None else default_late,
            source=ToleranceSource.WORK_LOCATION,
            source_id=location.location_id,
            source_name=location.name,
        )

    def _from_defaults(self, action: AttendanceAction) -> ToleranceResult:
        early, late = self._defaults.for_action(action)
        return ToleranceResult(action=action, early_minutes=early, late_minutes=late, source=ToleranceSource.DEFAULT)

    def validate_checkout_time(self, user: User, now: datetime, shift_end: datetime) -> ValidationResult:
        tolerance = self.resolve(user, AttendanceAction.CHECKOUT, now)
        earliest = shift_end - timedelta(minutes=tolerance.early_minutes)
        latest = shift_end + timedelta(minutes=tolerance.late_minutes)

        if now < earliest:
            remaining = minutes_until(now, earliest)
            log.warning(
                "Checkout too early user=%s earliest=%s remaining=%s source=%s",
                user.user_id,
                earliest.strftime("%H:%M:%S"),
                remaining,
                tolerance.source.value,
            )
            return ValidationResult.reject(
                ValidationCode.CHECKOUT_TOO_EARLY,
                f"Check-out terlalu awal. Anda dapat check-out mulai pukul {earliest:%H:%M} ({remaining} menit lagi).",
                earliest_checkout=earliest.strftime("%H:%M:%S"),
                minutes_remaining=remaining,
                tolerance_source=tolerance.source.value,
            )

        if now > latest:
            log.info(
                "Checkout after allowed window (still permitted) user=%s latest=%s", user.user_id, latest.strftime("%H:%M:%S")
            )

        return ValidationResult.accept(
            ValidationCode.CHECKOUT_ALLOWED,
            "Check-out diizinkan",
            tolerance_source=tolerance.source.value,
            early_tolerance=tolerance.early_minutes,
            late_tolerance=tolerance.late_minutes,
        )

    def clear_user_cache(self, user_id: int) -> None:
        self._cache.forget(settings_cache_key(user_id))
        log.info("Cleared tolerance cache for user=%s", user_id)

    def clear_all_caches(self) -> None:
        self._cache.clear("tolerance_settings_user_")
        log.info("Cleared all tolerance caches")
