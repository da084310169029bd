from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import minutes_between
from ...core.enums import ValidationCode, ViolationType
from ...core.result import ValidationResult
from .base import AttendanceStrategy, TimeWindow, WindowDecision


class LateStrategy(AttendanceStrategy):
    """Punch after the window closes.

    Check-in is rejected unless the late gate is open. Check-out is always allowed as
    overtime; a closed late gate only turns it into a recorded violation.
    """

    def decide_checkin(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        late_by = minutes_between(window.latest, now)
        minutes_late = minutes_between(window.anchor, now)
        if window.allow_late:
            return WindowDecision(
                ValidationResult.accept(
                    ValidationCode.VALID_BUT_LATE,
                    f"Check-in berhasil, terlambat {minutes_late} menit (melewati toleransi, "
                    "diizinkan oleh pengaturan toleransi).",
                    is_late=True,
                    late_minutes=minutes_late,
                    minutes_past_window=late_by,
                    outside_window=True,
                    **window.to_dict(),
                ),
                ViolationType.LATE_CHECKIN,
                minutes_late,
            )
        return WindowDecision(
            ValidationResult.reject(
                ValidationCode.TOO_LATE,
                f"Terlambat untuk check-in. Batas check-in pukul {window.latest:%H:%M} "
                f"(terlambat {late_by} menit dari batas toleransi).",
                minutes_past_window=late_by,
                **window.to_dict(),
            ),
            ViolationType.LATE_CHECKIN,
            minutes_late,
        )

    def decide_checkout(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        overtime = minutes_between(window.anchor, now)
        result = ValidationResult.accept(
            ValidationCode.CHECKOUT_VERY_LATE,
            f"Check-out {overtime} menit setelah shift berakhir (lembur).",
            is_overtime=True,
            overtime_minutes=overtime,
            **window.to_dict(),
        )
        if window.allow_late is False:
            return WindowDecision(result, ViolationType.LATE_CHECKOUT, minutes_between(window.latest, now))
        return WindowDecision(result)
