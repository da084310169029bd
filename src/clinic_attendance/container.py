from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.calculator.effective_calculator import EffectiveDurationCalculator
from .attendance.engine import AttendanceValidationEngine
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLViolationRepository
from .attendance.penalty import AutoCloseService
from .cache.store import CacheStore, build_cache_store
from .core.config import AttendanceConfig
from .database.connection import DBConfig, DatabaseConnection
from .locations.geofence import GeofenceValidator
from .locations.mysql_location_repository import MySQLWorkLocationRepository
from .overrides.service import OverrideService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.resolver import ShiftScheduleResolver
from .shifts.mysql_shift_repository import MySQLShiftTemplateRepository
from .tolerance.model import SCHEDULE_DEFAULTS, ToleranceDefaults
from .tolerance.mysql_tolerance_repository import MySQLHolidayCalendar, MySQLToleranceSettingRepository
from .tolerance.resolver import ToleranceResolver
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    cache: CacheStore
    config: AttendanceConfig

    users_repo: MySQLUserRepository
    locations_repo: MySQLWorkLocationRepository
    shifts_repo: MySQLShiftTemplateRepository
    schedules_repo: MySQLScheduleRepository
    attendance_repo: MySQLAttendanceRepository
    violations_repo: MySQLViolationRepository
    tolerance_repo: MySQLToleranceSettingRepository

    override_service: OverrideService
    tolerance_resolver: ToleranceResolver
    legacy_tolerance_resolver: ToleranceResolver
    schedule_resolver: ShiftScheduleResolver
    geofence_validator: GeofenceValidator
    attendance_engine: AttendanceValidationEngine
    auto_close_service: AutoCloseService


def build_container(
    *,
    db_config: Mapping[str, Any],
    cache_url: str = "",
    attendance: Optional[Mapping[str, Any]] = None,
) -> Container:
    config = AttendanceConfig.from_mapping(attendance)
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    cache = build_cache_store(cache_url)

    users_repo = MySQLUserRepository(conn)
    locations_repo = MySQLWorkLocationRepository(conn)
    shifts_repo = MySQLShiftTemplateRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    violations_repo = MySQLViolationRepository(conn)
    tolerance_repo = MySQLToleranceSettingRepository(conn)
    holidays = MySQLHolidayCalendar(conn)

    override_service = OverrideService(cache)

    # Two resolvers on purpose: the schedule path falls back to 15/15 on check-in, the
    # legacy path (public lookups, auto-close sweep) to the configured 30/60.
    tolerance_resolver = ToleranceResolver(
        tolerance_repo,
        locations_repo,
        cache,
        overrides=override_service,
        holidays=holidays,
        defaults=SCHEDULE_DEFAULTS,
        cache_ttl_seconds=config.tolerance_cache_ttl_seconds,
    )
    legacy_tolerance_resolver = ToleranceResolver(
        tolerance_repo,
        locations_repo,
        cache,
        overrides=override_service,
        holidays=holidays,
        defaults=ToleranceDefaults.from_config(config),
        cache_ttl_seconds=config.tolerance_cache_ttl_seconds,
    )

    schedule_resolver = ShiftScheduleResolver(
        schedules_repo,
        shifts_repo,
        attendance_repo,
        locations_repo,
        tolerance_resolver,
        config=config,
    )
    geofence_validator = GeofenceValidator(locations_repo, config=config, overrides=override_service)

    attendance_engine = AttendanceValidationEngine(
        users_repo,
        attendance_repo,
        violations_repo,
        schedule_resolver,
        geofence_validator,
        tolerance_resolver,
        EffectiveDurationCalculator(),
        config=config,
        legacy_tolerance=legacy_tolerance_resolver,
        strategy_factory=AttendanceStrategyFactory(),
    )
    auto_close_service = AutoCloseService(attendance_repo, users_repo, violations_repo, legacy_tolerance_resolver)

    return Container(
        conn=conn,
        cache=cache,
        config=config,
        users_repo=users_repo,
        locations_repo=locations_repo,
        shifts_repo=shifts_repo,
        schedules_repo=schedules_repo,
        attendance_repo=attendance_repo,
        violations_repo=violations_repo,
        tolerance_repo=tolerance_repo,
        override_service=override_service,
        tolerance_resolver=tolerance_resolver,
        legacy_tolerance_resolver=legacy_tolerance_resolver,
        schedule_resolver=schedule_resolver,
        geofence_validator=geofence_validator,
        attendance_engine=attendance_engine,
        auto_close_service=auto_close_service,
    )
