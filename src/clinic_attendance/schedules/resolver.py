from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import minutes_between, minutes_until, shift_bounds
from ..common.time_parsing import parse_time_of_day
from ..core.config import AttendanceConfig
from ..core.constants import FALLBACK_SHIFT_END, FALLBACK_SHIFT_START
from ..core.enums import AttendanceAction, ValidationCode
from ..core.exceptions import StorageUnavailableError
from ..core.result import ValidationResult
from ..locations.model import WorkLocation
from ..locations.repository import WorkLocationRepository
from ..shifts.breaks import breaks_for_template
from ..shifts.model import ShiftTemplate
from ..shifts.repository import ShiftTemplateRepository
from ..tolerance.model import ToleranceResult
from ..tolerance.resolver import ToleranceResolver
from ..users.model import User
from .model import ScheduleAssignment, ScheduledShift
from .repository import ScheduleRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleResult:
    result: ValidationResult
    shift: Optional[ScheduledShift] = None

    @property
    def valid(self) -> bool:
        return self.result.valid

    @property
    def code(self) -> ValidationCode:
        return self.result.code

    @property
    def message(self) -> str:
        return self.result.message


@dataclass(frozen=True)
class MultiShiftPolicy:
    enabled: bool = True
    max_shifts_per_day: int = 3
    min_gap_minutes: int = 60
    max_gap_minutes: int = 720
    overtime_after_shifts: int = 2

    @classmethod
    def from_config(cls, config: AttendanceConfig) -> "MultiShiftPolicy":
        return cls(
            enabled=config.multishift_enabled,
            max_shifts_per_day=config.max_shifts_per_day,
            min_gap_minutes=config.min_gap_between_shifts_minutes,
            max_gap_minutes=config.max_gap_between_shifts_minutes,
            overtime_after_shifts=config.overtime_after_shifts,
        )

    def check(self, records_today: Sequence[AttendanceRecord], now: datetime) -> ValidationResult:
        """Decide whether another check-in may start today and which sequence it gets."""
        open_record = next((r for r in records_today if r.is_open), None)
        if open_record is not None:
            return ValidationResult.reject(
                ValidationCode.ALREADY_CHECKED_IN,
                f"Anda sudah check-in pukul {open_record.time_in:%H:%M}. Silakan check-out terlebih dahulu.",
                attendance_id=open_record.attendance_id,
                time_in=open_record.time_in.strftime("%H:%M:%S"),
            )

        count = len(records_today)
        if count == 0:
            return ValidationResult.accept(
                ValidationCode.VALID,
                "Shift pertama hari ini",
                shift_sequence=1,
                is_additional_shift=False,
                is_overtime=False,
                previous_attendance_id=None,
                gap_minutes=None,
            )

        if not self.enabled:
            return ValidationResult.reject(
                ValidationCode.ALREADY_CHECKED_IN,
                "Anda sudah menyelesaikan presensi hari ini.",
                shifts_today=count,
            )

        if count >= self.max_shifts_per_day:
            return ValidationResult.reject(
                ValidationCode.MAX_SHIFTS_REACHED,
                f"Batas maksimal {self.max_shifts_per_day} shift per hari sudah tercapai.",
                shifts_today=count,
                max_shifts_per_day=self.max_shifts_per_day,
            )

        previous = max(records_today, key=lambda r: r.time_out or r.time_in)
        last_out = previous.time_out or previous.time_in
        gap = minutes_between(last_out, now)

        if gap < self.min_gap_minutes:
            next_allowed = last_out + timedelta(minutes=self.min_gap_minutes)
            remaining = minutes_until(now, next_allowed)
            return ValidationResult.reject(
                ValidationCode.SHIFT_GAP_TOO_SHORT,
                f"Jeda antar shift minimal {self.min_gap_minutes} menit. "
                f"Tunggu {remaining} menit lagi (mulai pukul {next_allowed:%H:%M}).",
                gap_minutes=gap,
                min_gap_minutes=self.min_gap_minutes,
                minutes_remaining=remaining,
                next_checkin_at=next_allowed.strftime("%H:%M:%S"),
                previous_attendance_id=previous.attendance_id,
            )

        if gap > self.max_gap_minutes:
            return ValidationResult.reject(
                ValidationCode.SHIFT_GAP_TOO_LONG,
                f"Jeda sejak shift terakhir {gap} menit melebihi batas {self.max_gap_minutes} menit.",
                gap_minutes=gap,
                max_gap_minutes=self.max_gap_minutes,
                previous_attendance_id=previous.attendance_id,
            )

        sequence = count + 1
        return ValidationResult.accept(
            ValidationCode.VALID,
            f"Shift ke-{sequence}",
            shift_sequence=sequence,
            is_additional_shift=True,
            is_overtime=count >= self.overtime_after_shifts,
            previous_attendance_id=previous.attendance_id,
            gap_minutes=gap,
        )


class ShiftScheduleResolver:
    """Find the shift a user should check in to right now.

    Assignments are tried in sequence order. One that an attendance record already
    references is consumed; in production mode one whose check-in window has not opened yet
    is skipped too.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        templates: ShiftTemplateRepository,
        attendance: AttendanceRepository,
        locations: WorkLocationRepository,
        tolerance: ToleranceResolver,
        *,
        config: AttendanceConfig,
    ):
        self._schedules = schedules
        self._templates = templates
        self._attendance = attendance
        self._locations = locations
        self._tolerance = tolerance
        self._config = config
        self.policy = MultiShiftPolicy.from_config(config)

    def check_sequence(self, user: User, now: datetime) -> ValidationResult:
        open_record = self._attendance.get_open_for_user(user.user_id)
        records = list(self._attendance.list_for_user_and_date(user.user_id, now.date()))
        if open_record is not None and all(r.attendance_id != open_record.attendance_id for r in records):
            # An open record from an earlier day still blocks a new check-in.
            records.append(open_record)
        return self.policy.check(records, now)

    def find_applicable_shift(self, user: User, now: datetime) -> ScheduleResult:
        assignments = sorted(
            self._schedules.list_for_user_and_date(user.user_id, now.date()),
            key=lambda a: (a.sequence_number, a.assignment_id),
        )
        if not assignments:
            log.info("No schedule user=%s date=%s", user.user_id, now.date())
            return ScheduleResult(
                ValidationResult.reject(
                    ValidationCode.NO_SCHEDULE,
                    "Anda tidak memiliki jadwal jaga hari ini. Hubungi admin untuk penjadwalan.",
                    date=now.date().isoformat(),
                )
            )

        active = [a for a in assignments if a.is_active]
        if not active:
            statuses = sorted({str(a.status) for a in assignments})
            return ScheduleResult(
                ValidationResult.reject(
                    ValidationCode.SCHEDULE_INACTIVE,
                    f"Jadwal jaga hari ini tidak aktif (status: {', '.join(statuses)}).",
                    statuses=statuses,
                )
            )

        checkin_tolerance: Optional[ToleranceResult] = None
        consumed = 0
        pending: list[tuple[ScheduledShift, datetime]] = []

        for assignment in active:
            if self._attendance.is_assignment_used(assignment.assignment_id):
                consumed += 1
                continue

            shift = self._build_shift(assignment)
            if self._config.production_mode:
                if checkin_tolerance is None:
                    checkin_tolerance = self._tolerance.resolve(
                        user, AttendanceAction.CHECKIN, now, work_location=shift.work_location
                    )
                opens_at = shift.starts_at - timedelta(minutes=checkin_tolerance.early_minutes)
                # An open early gate lets the punch reach the window check, which records the violation.
                if now < opens_at and not checkin_tolerance.allow_early:
                    pending.append((shift, opens_at))
                    continue

            return ScheduleResult(
                ValidationResult.accept(
                    ValidationCode.VALID_SCHEDULE,
                    f"Jadwal ditemukan: {shift.name}",
                    **shift.to_dict(),
                ),
                shift,
            )

        if consumed == len(active):
            return ScheduleResult(
                ValidationResult.reject(
                    ValidationCode.ALL_SHIFTS_COMPLETED,
                    "Semua shift hari ini sudah diselesaikan.",
                    completed_shifts=consumed,
                )
            )

        next_shift, opens_at = pending[0]
        wait = minutes_until(now, opens_at)
        return ScheduleResult(
            ValidationResult.reject(
                ValidationCode.NO_AVAILABLE_SHIFT,
                f"Belum ada shift yang bisa dimulai. Shift {next_shift.name} dapat check-in mulai pukul "
                f"{opens_at:%H:%M} ({wait} menit lagi).",
                next_shift=next_shift.to_dict(),
                checkin_opens_at=opens_at.strftime("%H:%M:%S"),
                minutes_until_open=wait,
            )
        )

    def _build_shift(self, assignment: ScheduleAssignment) -> ScheduledShift:
        template, repaired = self._template_for(assignment)

        fallback_used = False
        start = self._pick_time(assignment.custom_start, template.start_time if template else None)
        end = self._pick_time(assignment.custom_end, template.end_time if template else None)
        if start is None or end is None:
            log.warning(
                "Shift times unusable for assignment=%s, using %s-%s",
                assignment.assignment_id,
                FALLBACK_SHIFT_START,
                FALLBACK_SHIFT_END,
            )
            start = parse_time_of_day(FALLBACK_SHIFT_START).value
            end = parse_time_of_day(FALLBACK_SHIFT_END).value
            fallback_used = True

        starts_at, ends_at = shift_bounds(assignment.work_date, start, end)
        return ScheduledShift(
            assignment=assignment,
            template=template,
            start=start,
            end=end,
            starts_at=starts_at,
            ends_at=ends_at,
            work_location=self._location_for(assignment),
            breaks=breaks_for_template(template, start, end),
            fallback_used=fallback_used,
            template_repaired=repaired,
        )

    @staticmethod
    def _pick_time(custom, template_value) -> Optional[time]:
        if custom is not None:
            parsed = parse_time_of_day(custom)
            if parsed.ok:
                return parsed.value
            log.warning("Ignoring unparsable custom shift time: %s", parsed.error)
        parsed = parse_time_of_day(template_value)
        if not parsed.ok and template_value is not None:
            log.warning("Unparsable shift template time: %s", parsed.error)
        return parsed.value

    def _template_for(self, assignment: ScheduleAssignment) -> tuple[Optional[ShiftTemplate], bool]:
        if assignment.shift_template_id is not None:
            template = self._templates.get_by_id(assignment.shift_template_id)
            if template is not None:
                return template, False
            log.warning(
                "Assignment=%s references missing template=%s",
                assignment.assignment_id,
                assignment.shift_template_id,
            )

        default_id = self._config.default_shift_template_id
        if default_id is None:
            return None, False

        template = self._templates.get_by_id(default_id)
        if template is None:
            log.warning("Default shift template=%s missing", default_id)
            return None, False

        try:
            self._schedules.assign_template(assignment.assignment_id, template.template_id)
        except StorageUnavailableError:
            log.warning("Could not persist template repair for assignment=%s", assignment.assignment_id, exc_info=True)
        log.warning("Assignment=%s auto-assigned default template=%s", assignment.assignment_id, template.template_id)
        return template, True

    def _location_for(self, assignment: ScheduleAssignment) -> Optional[WorkLocation]:
        if assignment.work_location_id is None:
            return None
        return self._locations.get_by_id(assignment.work_location_id)
