from datetime import date, datetime

from clinic_attendance.attendance.model import AttendanceRecord
from clinic_attendance.core.enums import ToleranceScope, ValidationCode, ViolationType
from clinic_attendance.schedules.model import ScheduleAssignment
from clinic_attendance.shifts.model import ShiftTemplate
from clinic_attendance.tolerance.model import ToleranceSetting
from clinic_attendance.users.model import User
from tests.fakes import CLINIC, FixedClock, build_harness

DAY = date(2025, 7, 15)
NURSE = User(user_id=7, name="Yaya", role="perawat", work_location_id=1)
LAT, LON = CLINIC.latitude, CLINIC.longitude


def _open_record(**overrides):
    values = dict(
        attendance_id=1,
        user_id=NURSE.user_id,
        work_date=DAY,
        time_in=datetime(2025, 7, 15, 7, 55),
        logical_time_in=datetime(2025, 7, 15, 8, 0),
        schedule_assignment_id=10,
        shift_start=datetime(2025, 7, 15, 8, 0),
        shift_end=datetime(2025, 7, 15, 16, 0),
        metadata={"breaks": [{"start": "12:00", "end": "13:00"}]},
    )
    values.update(overrides)
    return AttendanceRecord(**values)


def _harness(records, clock):
    return build_harness(users=[NURSE], records=records, clock=clock)


def test_checkout_too_early_keeps_record_open():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 15, 0)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert not result.valid
    assert result.code == ValidationCode.CHECKOUT_TOO_EARLY
    assert result.get("minutes_remaining") == 30
    assert h.attendance.get_by_id(1).is_open
    [violation] = h.violations.items
    assert violation.violation_type == ViolationType.EARLY_CHECKOUT
    assert violation.attendance_id == 1


def test_checkout_at_shift_end_credits_effective_minutes():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 16, 5)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.VALID_CHECKOUT
    record = h.attendance.get_by_id(1)
    assert record.time_out == datetime(2025, 7, 15, 16, 5)
    assert record.logical_time_out == datetime(2025, 7, 15, 16, 0)
    # 08:00-16:00 minus the 12:00-13:00 break.
    assert record.logical_work_minutes == 420
    assert result.get("final_hours") == "7j 0m"
    assert record.metadata["checkout_count"] == 1
    assert record.metadata["duration"]["break_overlap_minutes"] == 60


def test_checkout_early_within_tolerance():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 15, 40)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.VALID_CHECKOUT
    assert result.get("early_departure_minutes") == 20
    assert result.get("logical_work_minutes") == 400


def test_very_late_checkout_is_allowed_as_overtime():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 17, 30)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.valid
    assert result.code == ValidationCode.CHECKOUT_VERY_LATE
    assert result.get("overtime_minutes") == 90
    record = h.attendance.get_by_id(1)
    assert record.logical_time_out == datetime(2025, 7, 15, 16, 0)
    assert record.metadata["checkout"]["is_overtime"] is True
    assert h.violations.items == []


def test_checkout_off_site_is_tolerated():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 16, 0)))

    result = h.engine.check_out(NURSE.user_id, LAT + 0.01, LON)

    assert result.valid
    assert result.get("location_code") == ValidationCode.LOCATION_TOLERANCE_APPLIED.value


def test_checkout_without_checkin():
    h = _harness([], FixedClock(datetime(2025, 7, 15, 16, 0)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.NOT_CHECKED_IN


def test_repeat_checkout_overwrites_latest_record():
    clock = FixedClock(datetime(2025, 7, 15, 16, 5))
    h = _harness([_open_record()], clock)
    h.engine.check_out(NURSE.user_id, LAT, LON)

    clock.now = datetime(2025, 7, 15, 16, 20)
    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.valid
    assert result.get("is_repeat_checkout") is True
    record = h.attendance.get_by_id(1)
    assert record.time_out == datetime(2025, 7, 15, 16, 20)
    assert record.metadata["checkout_count"] == 2


def test_record_without_shift_end():
    record = _open_record(shift_start=None, shift_end=None, logical_time_in=None)
    h = _harness([record], FixedClock(datetime(2025, 7, 15, 12, 55)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.VALID_CHECKOUT_NO_END_TIME
    assert h.attendance.get_by_id(1).logical_work_minutes == 300


def test_validate_check_out_does_not_persist():
    h = _harness([_open_record()], FixedClock(datetime(2025, 7, 15, 15, 0)))

    result = h.engine.validate_check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.CHECKOUT_TOO_EARLY
    assert h.violations.items == []


def test_full_day_checkin_then_checkout():
    clock = FixedClock(datetime(2025, 7, 15, 7, 50))
    h = build_harness(
        users=[NURSE],
        assignments=[ScheduleAssignment(assignment_id=10, user_id=7, work_date=DAY, shift_template_id=1)],
        templates=[ShiftTemplate(template_id=1, name="Shift Pagi", start_time="08:00", end_time="16:00")],
        clock=clock,
    )
    checkin = h.engine.check_in(NURSE.user_id, LAT, LON)

    clock.now = datetime(2025, 7, 15, 16, 30)
    checkout = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert checkin.valid and checkout.valid
    assert checkout.get("attendance_id") == checkin.get("attendance_id")
    assert checkout.get("logical_work_minutes") == 420


def test_repeat_checkout_after_overnight_shift():
    record = _open_record(
        time_in=datetime(2025, 7, 15, 22, 0),
        logical_time_in=datetime(2025, 7, 15, 22, 0),
        shift_start=datetime(2025, 7, 15, 22, 0),
        shift_end=datetime(2025, 7, 16, 6, 0),
        metadata={},
    )
    clock = FixedClock(datetime(2025, 7, 16, 6, 0))
    h = _harness([record], clock)
    assert h.engine.check_out(NURSE.user_id, LAT, LON).valid

    clock.now = datetime(2025, 7, 16, 6, 10)
    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.valid
    assert result.get("is_repeat_checkout") is True
    stored = h.attendance.get_by_id(1)
    assert stored.time_out == datetime(2025, 7, 16, 6, 10)
    assert stored.logical_time_out == datetime(2025, 7, 16, 6, 0)
    assert stored.metadata["checkout_count"] == 2


def test_stale_closed_record_is_not_reopened_for_checkout():
    record = _open_record(time_out=datetime(2025, 7, 15, 16, 0))
    h = _harness([record], FixedClock(datetime(2025, 7, 16, 9, 0)))

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.NOT_CHECKED_IN


def _gated_harness(at, **gates):
    setting = ToleranceSetting(
        setting_id=1, setting_name="Perawat Yaya", scope=ToleranceScope.USER, scope_value="7", **gates
    )
    return build_harness(users=[NURSE], records=[_open_record()], settings=[setting], clock=FixedClock(at))


def test_early_checkout_gate_accepts_and_records_violation():
    h = _gated_harness(datetime(2025, 7, 15, 14, 0), allow_early_checkout=True)

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.valid
    assert result.code == ValidationCode.VALID_CHECKOUT
    assert result.get("early_departure_minutes") == 120
    record = h.attendance.get_by_id(1)
    assert not record.is_open
    assert record.logical_time_out == datetime(2025, 7, 15, 14, 0)
    # 08:00-14:00 minus the 12:00-13:00 break.
    assert record.logical_work_minutes == 300
    [violation] = h.violations.items
    assert violation.violation_type == ViolationType.EARLY_CHECKOUT
    assert violation.violation_minutes == 90
    assert violation.attendance_id == 1


def test_closed_late_checkout_gate_records_violation():
    h = _gated_harness(datetime(2025, 7, 15, 17, 30), allow_late_checkout=False)

    result = h.engine.check_out(NURSE.user_id, LAT, LON)

    assert result.code == ValidationCode.CHECKOUT_VERY_LATE
    assert not h.attendance.get_by_id(1).is_open
    [violation] = h.violations.items
    assert violation.violation_type == ViolationType.LATE_CHECKOUT
    assert violation.violation_minutes == 30


def test_emergency_checkout_before_window():
    h = _gated_harness(datetime(2025, 7, 15, 14, 0), allow_emergency_override=True)

    result = h.engine.check_out(NURSE.user_id, LAT, LON, emergency_override=True)

    assert result.valid
    assert h.attendance.get_by_id(1).metadata["checkout"]["emergency_override"] is True
    [violation] = h.violations.items
    assert violation.violation_type == ViolationType.EARLY_CHECKOUT
    assert violation.is_emergency_override is True
