from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import minutes_between, now_local
from ..common.time_parsing import parse_time_of_day
from ..core.config import AttendanceConfig
from ..core.enums import AttendanceAction, ValidationCode
from ..core.exceptions import DuplicateOpenSessionError, StorageUnavailableError, ValidationError
from ..core.result import ValidationResult
from ..locations.geofence import GeofenceValidator
from ..schedules.model import ScheduledShift
from ..schedules.resolver import ScheduleResult, ShiftScheduleResolver
from ..shifts.model import BreakInterval
from ..tolerance.model import ToleranceResult
from ..tolerance.resolver import ToleranceResolver
from ..users.model import User
from ..users.repository import UserRepository
from .calculator.base import DurationCalculator, DurationResult
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, AttendanceViolation
from .repository import AttendanceRepository, ViolationRepository
from .strategies.base import TimeWindow, WindowDecision

log = logging.getLogger(__name__)


@dataclass
class _CheckInContext:
    user: Optional[User] = None
    shift: Optional[ScheduledShift] = None
    sequence: Optional[ValidationResult] = None
    tolerance: Optional[ToleranceResult] = None
    decision: Optional[WindowDecision] = None
    location: Optional[ValidationResult] = None
    emergency_override: bool = False


@dataclass
class _CheckOutContext:
    user: Optional[User] = None
    record: Optional[AttendanceRecord] = None
    decision: Optional[WindowDecision] = None
    location: Optional[ValidationResult] = None
    tolerance: Optional[ToleranceResult] = None
    emergency_override: bool = False


def _breaks_to_payload(breaks: Sequence[BreakInterval]) -> list[dict[str, str]]:
    return [{"start": b.start.strftime("%H:%M"), "end": b.end.strftime("%H:%M")} for b in breaks]


def _breaks_from_payload(payload: Any) -> list[BreakInterval]:
    out: list[BreakInterval] = []
    for item in payload or []:
        start = parse_time_of_day(item.get("start"))
        end = parse_time_of_day(item.get("end"))
        if start.ok and end.ok:
            out.append(BreakInterval(start=start.value, end=end.value))
    return out


class AttendanceValidationEngine:
    """Check-in/check-out decision pipeline.

    Every policy outcome comes back as a ValidationResult; ``validate_*`` only evaluates,
    ``check_in``/``check_out`` also persist the record and the violation trail.
    """

    def __init__(
        self,
        users: UserRepository,
        attendance: AttendanceRepository,
        violations: ViolationRepository,
        schedules: ShiftScheduleResolver,
        geofence: GeofenceValidator,
        tolerance: ToleranceResolver,
        calculator: DurationCalculator,
        *,
        config: AttendanceConfig,
        legacy_tolerance: Optional[ToleranceResolver] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._attendance = attendance
        self._violations = violations
        self._schedules = schedules
        self._geofence = geofence
        self._tolerance = tolerance
        self._legacy_tolerance = legacy_tolerance or tolerance
        self._calculator = calculator
        self._config = config
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    # --- public surface -------------------------------------------------

    def resolve_tolerance(self, user_id: int, action: AttendanceAction, at: Optional[datetime] = None) -> ToleranceResult:
        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError(f"User {user_id} tidak ditemukan")
        return self._legacy_tolerance.resolve(user, action, at or self._clock())

    def calculate_effective_duration(
        self,
        check_in: Any,
        check_out: Any,
        shift_start: Any,
        shift_end: Any,
        breaks: Sequence[BreakInterval] = (),
    ) -> DurationResult:
        return self._calculator.calculate(check_in, check_out, shift_start, shift_end, breaks)

    def find_applicable_shift(self, user_id: int, at: Optional[datetime] = None) -> ScheduleResult:
        user = self._users.get_by_id(user_id)
        if not user:
            return ScheduleResult(self._user_not_found(user_id))
        return self._schedules.find_applicable_shift(user, at or self._clock())

    def validate_check_in(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        at: Optional[datetime] = None,
        *,
        emergency_override: bool = False,
    ) -> ValidationResult:
        result, _ = self._evaluate_check_in(
            user_id, latitude, longitude, accuracy, at or self._clock(), emergency_override
        )
        return result

    def check_in(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        at: Optional[datetime] = None,
        *,
        emergency_override: bool = False,
    ) -> ValidationResult:
        now = at or self._clock()
        result, ctx = self._evaluate_check_in(user_id, latitude, longitude, accuracy, now, emergency_override)
        if not result.valid:
            if ctx.decision is not None and not ctx.decision.result.valid and ctx.decision.violation_type is not None:
                self._record_violation(ctx.user, ctx.decision, now)
            return result

        shift = ctx.shift
        logical_time_in = max(now, shift.starts_at)
        metadata = {
            "checkin": {
                "code": result.code.value,
                "validated_at": now.isoformat(),
                "latitude": latitude,
                "longitude": longitude,
                "accuracy": accuracy,
                "location_code": ctx.location.code.value,
                "distance": ctx.location.get("distance"),
                "tolerance": ctx.tolerance.to_dict(),
                "emergency_override": ctx.emergency_override,
            },
            "shift": shift.to_dict(),
            "breaks": _breaks_to_payload(shift.breaks),
            "multishift": {
                key: ctx.sequence.get(key)
                for key in ("shift_sequence", "is_additional_shift", "is_overtime", "previous_attendance_id", "gap_minutes")
            },
        }

        try:
            attendance_id = self._attendance.create_checkin(
                user_id=ctx.user.user_id,
                work_date=now.date(),
                time_in=now,
                logical_time_in=logical_time_in,
                schedule_assignment_id=shift.assignment.assignment_id,
                shift_start=shift.starts_at,
                shift_end=shift.ends_at,
                shift_sequence=int(ctx.sequence.get("shift_sequence", 1)),
                metadata=metadata,
            )
        except DuplicateOpenSessionError:
            log.warning("Concurrent check-in rejected user=%s", ctx.user.user_id)
            return ValidationResult.reject(
                ValidationCode.ALREADY_CHECKED_IN,
                "Anda sudah check-in. Silakan check-out terlebih dahulu.",
            )
        if ctx.decision.violation_type is not None:
            self._record_violation(
                ctx.user,
                ctx.decision,
                now,
                attendance_id=attendance_id,
                emergency_override=ctx.emergency_override,
            )

        log.info(
            "Check-in stored user=%s attendance=%s code=%s sequence=%s",
            ctx.user.user_id,
            attendance_id,
            result.code.value,
            ctx.sequence.get("shift_sequence"),
        )
        return result.with_data(attendance_id=attendance_id, logical_time_in=logical_time_in.strftime("%H:%M:%S"))

    def validate_check_out(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        at: Optional[datetime] = None,
        *,
        emergency_override: bool = False,
    ) -> ValidationResult:
        result, _ = self._evaluate_check_out(
            user_id, latitude, longitude, accuracy, at or self._clock(), emergency_override
        )
        return result

    def check_out(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        at: Optional[datetime] = None,
        *,
        emergency_override: bool = False,
    ) -> ValidationResult:
        now = at or self._clock()
        result, ctx = self._evaluate_check_out(user_id, latitude, longitude, accuracy, now, emergency_override)
        if ctx.decision is not None and ctx.decision.violation_type is not None:
            self._record_violation(
                ctx.user,
                ctx.decision,
                now,
                attendance_id=ctx.record.attendance_id,
                emergency_override=ctx.emergency_override,
            )
        if not result.valid:
            return result

        record = ctx.record
        logical_time_out = min(now, record.shift_end) if record.shift_end else now
        duration = self._logical_duration(record, logical_time_out)
        logical_minutes = duration.final_minutes if duration is not None else max(
            0, minutes_between(record.logical_time_in or record.time_in, logical_time_out)
        )

        metadata = dict(record.metadata)
        metadata["checkout"] = {
            "code": result.code.value,
            "validated_at": now.isoformat(),
            "latitude": latitude,
            "longitude": longitude,
            "accuracy": accuracy,
            "location_code": ctx.location.code.value,
            "tolerance": ctx.tolerance.to_dict() if ctx.tolerance else None,
            "is_overtime": bool(result.get("is_overtime", False)),
            "emergency_override": ctx.emergency_override,
        }
        metadata["checkout_count"] = int(metadata.get("checkout_count", 0)) + 1
        if duration is not None:
            metadata["duration"] = duration.to_dict()

        self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            time_out=now,
            logical_time_out=logical_time_out,
            logical_work_minutes=logical_minutes,
            metadata=metadata,
        )
        log.info(
            "Check-out stored user=%s attendance=%s code=%s minutes=%s",
            record.user_id,
            record.attendance_id,
            result.code.value,
            logical_minutes,
        )
        return result.with_data(
            attendance_id=record.attendance_id,
            logical_time_out=logical_time_out.strftime("%H:%M:%S"),
            logical_work_minutes=logical_minutes,
            final_hours=duration.final_hours if duration is not None else None,
        )

    # --- pipelines ------------------------------------------------------

    def _evaluate_check_in(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        now: datetime,
        emergency_override: bool = False,
    ) -> tuple[ValidationResult, _CheckInContext]:
        ctx = _CheckInContext()

        user = self._users.get_by_id(user_id)
        if not user:
            return self._user_not_found(user_id), ctx
        ctx.user = user

        ctx.sequence = self._schedules.check_sequence(user, now)
        if not ctx.sequence.valid:
            log.info("Check-in rejected user=%s code=%s", user.user_id, ctx.sequence.code.value)
            return ctx.sequence, ctx

        denied = self._check_permission(user)
        if denied is not None:
            return denied, ctx

        schedule = self._schedules.find_applicable_shift(user, now)
        if not schedule.valid:
            log.info("Check-in rejected user=%s code=%s", user.user_id, schedule.code.value)
            return schedule.result, ctx
        ctx.shift = schedule.shift

        ctx.tolerance = self._tolerance.resolve(user, AttendanceAction.CHECKIN, now, work_location=ctx.shift.work_location)
        window = TimeWindow.around(ctx.shift.starts_at, ctx.tolerance)
        if emergency_override:
            window = self._apply_emergency_override(ctx, user, window, AttendanceAction.CHECKIN)
        ctx.decision = self._factory.decide_checkin(now=now, window=window)
        if not ctx.decision.result.valid:
            log.info("Check-in rejected user=%s code=%s", user.user_id, ctx.decision.result.code.value)
            return ctx.decision.result.with_data(**ctx.shift.to_dict()), ctx

        ctx.location = self._geofence.validate(
            user, latitude, longitude, accuracy, at=now, work_location=ctx.shift.work_location
        )
        if not ctx.location.valid:
            return ctx.location, ctx

        sequence = int(ctx.sequence.get("shift_sequence", 1))
        is_overtime = bool(ctx.sequence.get("is_overtime", False))
        message = ctx.decision.result.message
        if sequence > 1:
            message += f" - Shift ke-{sequence}"
        if is_overtime:
            message += " (Lembur)"

        data = dict(ctx.decision.result.data)
        data.update(ctx.shift.to_dict())
        data.update(
            shift_sequence=sequence,
            is_additional_shift=bool(ctx.sequence.get("is_additional_shift", False)),
            is_overtime=is_overtime,
            previous_attendance_id=ctx.sequence.get("previous_attendance_id"),
            gap_minutes=ctx.sequence.get("gap_minutes"),
            location_code=ctx.location.code.value,
            distance=ctx.location.get("distance"),
            logical_time_in=max(now, ctx.shift.starts_at).strftime("%H:%M:%S"),
        )
        if ctx.location.code == ValidationCode.ADMIN_OVERRIDE_ACTIVE:
            data["override_reason"] = ctx.location.get("override_reason")

        return ValidationResult(valid=True, code=ctx.decision.result.code, message=message, data=data), ctx

    def _evaluate_check_out(
        self,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        now: datetime,
        emergency_override: bool = False,
    ) -> tuple[ValidationResult, _CheckOutContext]:
        ctx = _CheckOutContext()

        user = self._users.get_by_id(user_id)
        if not user:
            return self._user_not_found(user_id), ctx
        ctx.user = user

        record = self._attendance.get_open_for_user(user.user_id)
        if record is None:
            record = self._repeat_checkout_target(user.user_id, now)
        if record is None:
            log.info("Check-out rejected user=%s code=NOT_CHECKED_IN", user.user_id)
            return (
                ValidationResult.reject(
                    ValidationCode.NOT_CHECKED_IN,
                    "Anda belum check-in hari ini.",
                ),
                ctx,
            )
        ctx.record = record

        ctx.location = self._geofence.validate(user, latitude, longitude, accuracy, at=now, checkout=True)

        base = {
            "attendance_id": record.attendance_id,
            "time_in": record.time_in.strftime("%H:%M:%S"),
            "is_repeat_checkout": not record.is_open,
            "location_code": ctx.location.code.value,
        }

        if record.shift_end is None:
            return (
                ValidationResult.accept(
                    ValidationCode.VALID_CHECKOUT_NO_END_TIME,
                    "Check-out berhasil (jadwal tanpa jam selesai)",
                    **base,
                ),
                ctx,
            )

        ctx.tolerance = self._tolerance.resolve(user, AttendanceAction.CHECKOUT, now)
        window = TimeWindow.around(record.shift_end, ctx.tolerance)
        if emergency_override:
            window = self._apply_emergency_override(ctx, user, window, AttendanceAction.CHECKOUT)
        ctx.decision = self._factory.decide_checkout(now=now, window=window)
        if not ctx.decision.result.valid:
            log.info("Check-out rejected user=%s code=%s", user.user_id, ctx.decision.result.code.value)
        elif ctx.decision.result.code == ValidationCode.CHECKOUT_VERY_LATE:
            log.warning(
                "Very late check-out user=%s attendance=%s overtime=%s",
                user.user_id,
                record.attendance_id,
                ctx.decision.result.get("overtime_minutes"),
            )
        return ctx.decision.result.with_data(**base), ctx

    # --- helpers --------------------------------------------------------

    @staticmethod
    def _user_not_found(user_id: int) -> ValidationResult:
        return ValidationResult.reject(ValidationCode.USER_NOT_FOUND, "Pengguna tidak ditemukan.", user_id=user_id)

    def _check_permission(self, user: User) -> Optional[ValidationResult]:
        if not user.is_active:
            return ValidationResult.reject(
                ValidationCode.USER_NOT_ALLOWED,
                "Akun Anda tidak aktif. Hubungi admin.",
                reason="inactive",
            )
        if user.role not in self._config.allowed_roles:
            return ValidationResult.reject(
                ValidationCode.USER_NOT_ALLOWED,
                f"Peran {user.role or '-'} tidak diizinkan melakukan presensi.",
                reason="role",
                role=user.role,
            )
        return None

    def _repeat_checkout_target(self, user_id: int, now: datetime) -> Optional[AttendanceRecord]:
        """Latest closed record a repeated check-out may overwrite.

        Prefers today's records; an overnight session started yesterday still counts when
        its first check-out happened today.
        """
        records = self._attendance.list_for_user_and_date(user_id, now.date())
        if records:
            return records[-1]
        latest = self._attendance.latest_for_user(user_id)
        if latest is not None and latest.time_out is not None and latest.time_out.date() == now.date():
            return latest
        return None

    def _apply_emergency_override(self, ctx: Any, user: User, window: TimeWindow, action: AttendanceAction) -> TimeWindow:
        if not ctx.tolerance.allow_emergency_override:
            log.info("Emergency override ignored user=%s action=%s (not permitted)", user.user_id, action.value)
            return window
        log.warning("Emergency override applied user=%s action=%s", user.user_id, action.value)
        ctx.emergency_override = True
        return window.opened()

    def _logical_duration(self, record: AttendanceRecord, logical_time_out: datetime) -> Optional[DurationResult]:
        if record.shift_start is None or record.shift_end is None:
            return None
        logical_time_in = record.logical_time_in or max(record.time_in, record.shift_start)
        result = self._calculator.calculate(
            logical_time_in,
            logical_time_out,
            record.shift_start,
            record.shift_end,
            _breaks_from_payload(record.metadata.get("breaks")),
        )
        return None if result.error else result

    def _record_violation(
        self,
        user: Optional[User],
        decision: WindowDecision,
        now: datetime,
        *,
        attendance_id: Optional[int] = None,
        emergency_override: bool = False,
    ) -> None:
        if user is None:
            return
        violation = AttendanceViolation.build(
            user_id=user.user_id,
            violation_type=decision.violation_type,
            minutes=decision.violation_minutes,
            occurred_at=now,
            attendance_id=attendance_id,
            is_emergency_override=emergency_override,
            notes=decision.result.message,
        )
        try:
            self._violations.record(violation)
        except StorageUnavailableError:
            log.warning("Could not store violation user=%s type=%s", user.user_id, violation.violation_type.value, exc_info=True)
