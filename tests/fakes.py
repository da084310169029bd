from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional

from clinic_attendance.attendance.calculator.effective_calculator import EffectiveDurationCalculator
from clinic_attendance.attendance.engine import AttendanceValidationEngine
from clinic_attendance.attendance.model import AttendanceRecord, AttendanceViolation
from clinic_attendance.attendance.penalty import AutoCloseService
from clinic_attendance.cache.store import InMemoryCacheStore
from clinic_attendance.core.config import AttendanceConfig
from clinic_attendance.core.enums import ToleranceScope
from clinic_attendance.core.exceptions import DuplicateOpenSessionError
from clinic_attendance.locations.geofence import GeofenceValidator
from clinic_attendance.locations.model import WorkLocation
from clinic_attendance.overrides.service import OverrideService
from clinic_attendance.schedules.model import ScheduleAssignment
from clinic_attendance.schedules.resolver import ShiftScheduleResolver
from clinic_attendance.shifts.model import ShiftTemplate
from clinic_attendance.tolerance.model import SCHEDULE_DEFAULTS, ToleranceDefaults, ToleranceSetting
from clinic_attendance.tolerance.resolver import ToleranceResolver
from clinic_attendance.users.model import User

CLINIC = WorkLocation(location_id=1, name="Klinik Dokterku", latitude=-7.898878, longitude=111.961884, radius_meters=100)


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, User]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)


@dataclass
class InMemoryLocations:
    locations: dict[int, WorkLocation] = field(default_factory=dict)

    def get_by_id(self, location_id: int) -> Optional[WorkLocation]:
        return self.locations.get(location_id)

    def first_active(self) -> Optional[WorkLocation]:
        for location in self.locations.values():
            if location.is_active:
                return location
        return None


@dataclass
class InMemoryTemplates:
    templates: dict[int, ShiftTemplate] = field(default_factory=dict)

    def list_all(self):
        return list(self.templates.values())

    def get_by_id(self, template_id: int) -> Optional[ShiftTemplate]:
        return self.templates.get(template_id)


@dataclass
class InMemorySchedules:
    assignments: list[ScheduleAssignment] = field(default_factory=list)
    repaired: dict[int, int] = field(default_factory=dict)

    def list_for_user_and_date(self, user_id: int, work_date: date):
        return [a for a in self.assignments if a.user_id == user_id and a.work_date == work_date]

    def assign_template(self, assignment_id: int, template_id: int) -> bool:
        self.repaired[assignment_id] = template_id
        return True


@dataclass
class InMemorySettings:
    settings: list[ToleranceSetting] = field(default_factory=list)
    calls: int = 0

    def first_active_for_scope(self, scope: ToleranceScope, scope_value: Optional[str] = None):
        self.calls += 1
        matches = [
            s
            for s in self.settings
            if s.is_active and s.scope == scope and (scope_value is None or s.scope_value == scope_value)
        ]
        matches.sort(key=lambda s: (s.priority, s.setting_id))
        return matches[0] if matches else None


class InMemoryAttendance:
    def __init__(self, records: Optional[list[AttendanceRecord]] = None):
        self.records: dict[int, AttendanceRecord] = {r.attendance_id: r for r in records or []}
        self._id = max(self.records, default=0)

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(attendance_id)

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        for record in self.records.values():
            if record.user_id == user_id and record.is_open:
                return record
        return None

    def list_for_user_and_date(self, user_id: int, work_date: date):
        items = [r for r in self.records.values() if r.user_id == user_id and r.work_date == work_date]
        return sorted(items, key=lambda r: r.time_in)

    def latest_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        items = [r for r in self.records.values() if r.user_id == user_id]
        return max(items, key=lambda r: r.time_in, default=None)

    def is_assignment_used(self, assignment_id: int) -> bool:
        return any(r.schedule_assignment_id == assignment_id for r in self.records.values())

    def create_checkin(self, *, user_id: int, work_date: date, time_in: datetime, **kwargs: Any) -> int:
        if self.get_open_for_user(user_id) is not None:
            raise DuplicateOpenSessionError(f"User {user_id} already has an open record")
        self._id += 1
        self.records[self._id] = AttendanceRecord(
            attendance_id=self._id, user_id=user_id, work_date=work_date, time_in=time_in, **kwargs
        )
        return self._id

    def update_checkout(self, *, attendance_id: int, **changes: Any) -> bool:
        if attendance_id not in self.records:
            return False
        self.records[attendance_id] = replace(self.records[attendance_id], **changes)
        return True

    def close_if_open(self, *, attendance_id: int, **changes: Any) -> bool:
        record = self.records.get(attendance_id)
        if record is None or not record.is_open:
            return False
        self.records[attendance_id] = replace(record, **changes)
        return True

    def list_open(self, *, up_to: date):
        return [r for r in self.records.values() if r.is_open and r.work_date <= up_to]


@dataclass
class InMemoryViolations:
    items: list[AttendanceViolation] = field(default_factory=list)

    def record(self, violation: AttendanceViolation) -> int:
        self.items.append(violation)
        return len(self.items)


@dataclass
class FixedClock:
    now: datetime

    def __call__(self) -> datetime:
        return self.now


@dataclass
class Harness:
    engine: AttendanceValidationEngine
    attendance: InMemoryAttendance
    violations: InMemoryViolations
    schedules: InMemorySchedules
    overrides: OverrideService
    cache: InMemoryCacheStore
    tolerance: ToleranceResolver
    legacy_tolerance: ToleranceResolver
    auto_close: AutoCloseService


def build_harness(
    *,
    users: list[User],
    assignments: Optional[list[ScheduleAssignment]] = None,
    templates: Optional[list[ShiftTemplate]] = None,
    locations: Optional[list[WorkLocation]] = None,
    records: Optional[list[AttendanceRecord]] = None,
    settings: Optional[list[ToleranceSetting]] = None,
    config: Optional[AttendanceConfig] = None,
    clock: Optional[FixedClock] = None,
) -> Harness:
    config = config or AttendanceConfig()
    clock = clock or FixedClock(datetime(2025, 7, 15, 8, 0))
    users_repo = InMemoryUsers({u.user_id: u for u in users})
    locations_repo = InMemoryLocations({l.location_id: l for l in (locations if locations is not None else [CLINIC])})
    templates_repo = InMemoryTemplates({t.template_id: t for t in templates or []})
    schedules_repo = InMemorySchedules(list(assignments or []))
    attendance_repo = InMemoryAttendance(records)
    violations_repo = InMemoryViolations()
    settings_repo = InMemorySettings(list(settings or []))
    cache = InMemoryCacheStore()
    overrides = OverrideService(cache, clock=clock)

    tolerance = ToleranceResolver(
        settings_repo, locations_repo, cache, overrides=overrides, defaults=SCHEDULE_DEFAULTS, clock=clock
    )
    legacy = ToleranceResolver(
        settings_repo,
        locations_repo,
        cache,
        overrides=overrides,
        defaults=ToleranceDefaults.from_config(config),
        clock=clock,
    )
    schedule_resolver = ShiftScheduleResolver(
        schedules_repo, templates_repo, attendance_repo, locations_repo, tolerance, config=config
    )
    geofence = GeofenceValidator(locations_repo, config=config, overrides=overrides, clock=clock)
    engine = AttendanceValidationEngine(
        users_repo,
        attendance_repo,
        violations_repo,
        schedule_resolver,
        geofence,
        tolerance,
        EffectiveDurationCalculator(),
        config=config,
        legacy_tolerance=legacy,
        clock=clock,
    )
    auto_close = AutoCloseService(attendance_repo, users_repo, violations_repo, legacy, clock=clock)
    return Harness(
        engine=engine,
        attendance=attendance_repo,
        violations=violations_repo,
        schedules=schedules_repo,
        overrides=overrides,
        cache=cache,
        tolerance=tolerance,
        legacy_tolerance=legacy,
        auto_close=auto_close,
    )
