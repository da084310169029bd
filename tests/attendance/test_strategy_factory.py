from datetime import datetime

from clinic_attendance.attendance.factory import AttendanceStrategyFactory
from clinic_attendance.attendance.strategies.base import TimeWindow
from clinic_attendance.attendance.strategies.early_strategy import EarlyStrategy
from clinic_attendance.attendance.strategies.late_strategy import LateStrategy
from clinic_attendance.attendance.strategies.normal_strategy import NormalStrategy
from clinic_attendance.core.enums import ValidationCode, ViolationType

SHIFT_START = datetime(2025, 7, 15, 8, 0)
WINDOW = TimeWindow(anchor=SHIFT_START, early_minutes=15, late_minutes=15)


def test_factory_picks_strategy_by_window_position():
    factory = AttendanceStrategyFactory()

    assert isinstance(factory.for_punch(now=datetime(2025, 7, 15, 7, 44), window=WINDOW), EarlyStrategy)
    assert isinstance(factory.for_punch(now=datetime(2025, 7, 15, 7, 45), window=WINDOW), NormalStrategy)
    assert isinstance(factory.for_punch(now=datetime(2025, 7, 15, 8, 15), window=WINDOW), NormalStrategy)
    assert isinstance(factory.for_punch(now=datetime(2025, 7, 15, 8, 15, 1), window=WINDOW), LateStrategy)


def test_checkin_on_time_and_late_within_tolerance():
    factory = AttendanceStrategyFactory()

    on_time = factory.decide_checkin(now=datetime(2025, 7, 15, 7, 50), window=WINDOW)
    late = factory.decide_checkin(now=datetime(2025, 7, 15, 8, 10), window=WINDOW)

    assert on_time.result.code == ValidationCode.VALID
    assert on_time.violation_type is None
    assert late.result.code == ValidationCode.VALID_BUT_LATE
    assert late.result.get("late_minutes") == 10


def test_checkin_too_early_reports_wait_and_violation():
    decision = AttendanceStrategyFactory().decide_checkin(now=datetime(2025, 7, 15, 7, 30), window=WINDOW)

    assert not decision.result.valid
    assert decision.result.code == ValidationCode.TOO_EARLY
    assert decision.result.get("minutes_remaining") == 15
    assert decision.result.get("window_start") == "07:45:00"
    assert decision.violation_type == ViolationType.EARLY_CHECKIN


def test_checkin_too_late_counts_minutes_from_shift_start():
    decision = AttendanceStrategyFactory().decide_checkin(now=datetime(2025, 7, 15, 8, 40), window=WINDOW)

    assert decision.result.code == ValidationCode.TOO_LATE
    assert decision.result.get("minutes_past_window") == 25
    assert decision.violation_type == ViolationType.LATE_CHECKIN
    assert decision.violation_minutes == 40


def test_checkout_decisions():
    shift_end = TimeWindow(anchor=datetime(2025, 7, 15, 16, 0), early_minutes=30, late_minutes=60)
    factory = AttendanceStrategyFactory()

    early = factory.decide_checkout(now=datetime(2025, 7, 15, 15, 0), window=shift_end)
    inside = factory.decide_checkout(now=datetime(2025, 7, 15, 15, 40), window=shift_end)
    overtime = factory.decide_checkout(now=datetime(2025, 7, 15, 17, 30), window=shift_end)

    assert early.result.code == ValidationCode.CHECKOUT_TOO_EARLY
    assert early.result.get("minutes_remaining") == 30
    assert early.violation_type == ViolationType.EARLY_CHECKOUT

    assert inside.result.code == ValidationCode.VALID_CHECKOUT
    assert inside.result.get("early_departure_minutes") == 20

    assert overtime.result.valid
    assert overtime.result.code == ValidationCode.CHECKOUT_VERY_LATE
    assert overtime.result.get("overtime_minutes") == 90
    assert overtime.violation_type is None


def test_open_gates_accept_out_of_window_checkin_with_violation():
    factory = AttendanceStrategyFactory()
    gated = TimeWindow(anchor=SHIFT_START, early_minutes=15, late_minutes=15, allow_early=True, allow_late=True)

    early = factory.decide_checkin(now=datetime(2025, 7, 15, 7, 30), window=gated)
    late = factory.decide_checkin(now=datetime(2025, 7, 15, 8, 40), window=gated)

    assert early.result.code == ValidationCode.VALID
    assert (early.violation_type, early.violation_minutes) == (ViolationType.EARLY_CHECKIN, 15)
    assert late.result.code == ValidationCode.VALID_BUT_LATE
    assert late.result.get("minutes_past_window") == 25
    assert (late.violation_type, late.violation_minutes) == (ViolationType.LATE_CHECKIN, 40)


def test_opened_window_overrides_closed_gates():
    closed = TimeWindow(anchor=SHIFT_START, early_minutes=15, late_minutes=15, allow_early=False, allow_late=False)

    decision = AttendanceStrategyFactory().decide_checkin(now=datetime(2025, 7, 15, 8, 40), window=closed.opened())

    assert decision.result.valid
    assert decision.violation_type == ViolationType.LATE_CHECKIN
