from datetime import date, datetime, time

from clinic_attendance.attendance.model import AttendanceRecord
from clinic_attendance.cache.store import InMemoryCacheStore
from clinic_attendance.core.config import AttendanceConfig
from clinic_attendance.core.enums import ValidationCode
from clinic_attendance.schedules.model import ScheduleAssignment
from clinic_attendance.schedules.resolver import MultiShiftPolicy, ShiftScheduleResolver
from clinic_attendance.shifts.model import ShiftTemplate
from clinic_attendance.tolerance.resolver import ToleranceResolver
from clinic_attendance.users.model import User
from tests.fakes import (
    CLINIC,
    FixedClock,
    InMemoryAttendance,
    InMemoryLocations,
    InMemorySchedules,
    InMemorySettings,
    InMemoryTemplates,
)

DAY = date(2025, 7, 15)
NURSE = User(user_id=7, name="Yaya", role="perawat", work_location_id=1)

PAGI = ShiftTemplate(template_id=1, name="Shift Pagi", start_time="07:00", end_time="14:00")
SIANG = ShiftTemplate(template_id=2, name="Shift Siang", start_time="14:00:00", end_time="21:00:00")
MALAM = ShiftTemplate(template_id=3, name="Shift Malam", start_time="2025-07-15 22:00:00", end_time="2025-07-16 06:00:00")
DEFAULT = ShiftTemplate(template_id=14, name="Shift Umum", start_time="08:00", end_time="16:00", break_duration_minutes=60)


def _assignment(assignment_id, template_id, sequence=1, **extra):
    return ScheduleAssignment(
        assignment_id=assignment_id,
        user_id=NURSE.user_id,
        work_date=DAY,
        shift_template_id=template_id,
        sequence_number=sequence,
        **extra,
    )


def _resolver(assignments, *, records=None, templates=(PAGI, SIANG, MALAM, DEFAULT), config=None, now=None):
    config = config or AttendanceConfig()
    locations = InMemoryLocations({1: CLINIC})
    schedules = InMemorySchedules(list(assignments))
    tolerance = ToleranceResolver(
        InMemorySettings(), locations, InMemoryCacheStore(), clock=FixedClock(now or datetime(2025, 7, 15, 8, 0))
    )
    resolver = ShiftScheduleResolver(
        schedules,
        InMemoryTemplates({t.template_id: t for t in templates}),
        InMemoryAttendance(records),
        locations,
        tolerance,
        config=config,
    )
    return resolver, schedules


def _record(attendance_id, time_in, time_out=None, assignment_id=None):
    return AttendanceRecord(
        attendance_id=attendance_id,
        user_id=NURSE.user_id,
        work_date=time_in.date(),
        time_in=time_in,
        time_out=time_out,
        schedule_assignment_id=assignment_id,
    )


def test_no_schedule():
    resolver, _ = _resolver([])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 7, 0))

    assert result.code == ValidationCode.NO_SCHEDULE
    assert result.shift is None


def test_inactive_schedule_reports_status():
    resolver, _ = _resolver([_assignment(10, 1, status="cuti")])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 7, 0))

    assert result.code == ValidationCode.SCHEDULE_INACTIVE
    assert "cuti" in result.message


def test_first_unused_shift_is_selected():
    resolver, _ = _resolver([_assignment(10, 1), _assignment(11, 2, sequence=2)])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 6, 50))

    assert result.code == ValidationCode.VALID_SCHEDULE
    assert result.shift.name == "Shift Pagi"
    assert result.shift.starts_at == datetime(2025, 7, 15, 7, 0)
    assert result.shift.breaks[0].start == time(12, 0)
    assert result.result.get("shift_start") == "07:00"


def test_used_assignment_is_skipped():
    morning = _record(1, datetime(2025, 7, 15, 6, 55), datetime(2025, 7, 15, 14, 0), assignment_id=10)
    resolver, _ = _resolver([_assignment(10, 1), _assignment(11, 2, sequence=2)], records=[morning])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 13, 50))

    assert result.valid
    assert result.shift.assignment.assignment_id == 11


def test_all_shifts_completed():
    morning = _record(1, datetime(2025, 7, 15, 6, 55), datetime(2025, 7, 15, 14, 0), assignment_id=10)
    resolver, _ = _resolver([_assignment(10, 1)], records=[morning])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 15, 0))

    assert result.code == ValidationCode.ALL_SHIFTS_COMPLETED


def test_production_mode_waits_for_checkin_window():
    resolver, _ = _resolver([_assignment(11, 2)])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 13, 0))

    assert result.code == ValidationCode.NO_AVAILABLE_SHIFT
    assert result.result.get("checkin_opens_at") == "13:45:00"
    assert result.result.get("minutes_until_open") == 45


def test_development_mode_ignores_window():
    resolver, _ = _resolver([_assignment(11, 2)], config=AttendanceConfig(production_mode=False))

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 9, 0))

    assert result.valid
    assert result.shift.name == "Shift Siang"


def test_custom_times_override_template():
    resolver, _ = _resolver([_assignment(10, 1, custom_start="09:30", custom_end="15:30")])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 9, 20))

    assert result.shift.starts_at == datetime(2025, 7, 15, 9, 30)
    assert result.shift.ends_at == datetime(2025, 7, 15, 15, 30)


def test_overnight_template_from_datetime_strings():
    resolver, _ = _resolver([_assignment(12, 3)])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 21, 50))

    assert result.shift.is_overnight
    assert result.shift.ends_at == datetime(2025, 7, 16, 6, 0)
    assert [(b.start, b.end) for b in result.shift.breaks] == [(time(0, 0), time(0, 30))]


def test_missing_template_is_repaired_with_default():
    resolver, schedules = _resolver([_assignment(10, None)])

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 7, 50))

    assert result.valid
    assert result.shift.template_repaired
    assert result.shift.name == "Shift Umum"
    assert schedules.repaired == {10: 14}
    # No named slot matches, so the 60 minute break is centred in the shift.
    assert [(b.start, b.end) for b in result.shift.breaks] == [(time(11, 30), time(12, 30))]


def test_no_template_at_all_falls_back_to_office_hours():
    resolver, schedules = _resolver([_assignment(10, 99)], templates=())

    result = resolver.find_applicable_shift(NURSE, datetime(2025, 7, 15, 7, 50))

    assert result.valid
    assert result.shift.fallback_used
    assert result.shift.starts_at == datetime(2025, 7, 15, 8, 0)
    assert result.shift.ends_at == datetime(2025, 7, 15, 16, 0)
    assert schedules.repaired == {}


def test_policy_first_shift_of_day():
    result = MultiShiftPolicy().check([], datetime(2025, 7, 15, 8, 0))

    assert result.valid
    assert result.get("shift_sequence") == 1
    assert result.get("is_additional_shift") is False


def test_policy_open_record_blocks():
    open_record = _record(1, datetime(2025, 7, 15, 7, 0))

    result = MultiShiftPolicy().check([open_record], datetime(2025, 7, 15, 9, 0))

    assert result.code == ValidationCode.ALREADY_CHECKED_IN
    assert result.get("attendance_id") == 1


def test_policy_gap_between_shifts():
    done = _record(1, datetime(2025, 7, 15, 7, 0), datetime(2025, 7, 15, 12, 0))
    policy = MultiShiftPolicy()

    too_soon = policy.check([done], datetime(2025, 7, 15, 12, 30))
    allowed = policy.check([done], datetime(2025, 7, 15, 13, 1))

    assert too_soon.code == ValidationCode.SHIFT_GAP_TOO_SHORT
    assert too_soon.get("minutes_remaining") == 30
    assert too_soon.get("next_checkin_at") == "13:00:00"
    assert allowed.valid
    assert allowed.get("shift_sequence") == 2
    assert allowed.get("is_overtime") is False


def test_policy_gap_too_long():
    done = _record(1, datetime(2025, 7, 15, 6, 0), datetime(2025, 7, 15, 7, 0))

    result = MultiShiftPolicy().check([done], datetime(2025, 7, 15, 19, 1))

    assert result.code == ValidationCode.SHIFT_GAP_TOO_LONG


def test_policy_third_shift_is_overtime_and_fourth_is_refused():
    records = [
        _record(1, datetime(2025, 7, 15, 6, 0), datetime(2025, 7, 15, 10, 0)),
        _record(2, datetime(2025, 7, 15, 11, 0), datetime(2025, 7, 15, 15, 0)),
    ]
    policy = MultiShiftPolicy()

    third = policy.check(records, datetime(2025, 7, 15, 16, 0))
    records.append(_record(3, datetime(2025, 7, 15, 16, 0), datetime(2025, 7, 15, 19, 0)))
    fourth = policy.check(records, datetime(2025, 7, 15, 20, 30))

    assert third.valid
    assert third.get("shift_sequence") == 3
    assert third.get("is_overtime") is True
    assert fourth.code == ValidationCode.MAX_SHIFTS_REACHED


def test_policy_single_shift_mode():
    done = _record(1, datetime(2025, 7, 15, 7, 0), datetime(2025, 7, 15, 12, 0))

    result = MultiShiftPolicy(enabled=False).check([done], datetime(2025, 7, 15, 14, 0))

    assert result.code == ValidationCode.ALREADY_CHECKED_IN


def test_check_sequence_sees_open_record_from_yesterday():
    yesterday = _record(1, datetime(2025, 7, 14, 22, 0))
    resolver, _ = _resolver([], records=[yesterday])

    result = resolver.check_sequence(NURSE, datetime(2025, 7, 15, 8, 0))

    assert result.code == ValidationCode.ALREADY_CHECKED_IN
