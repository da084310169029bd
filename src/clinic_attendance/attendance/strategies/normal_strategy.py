from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import minutes_between, minutes_until
from ...core.enums import ValidationCode
from ...core.result import ValidationResult
from .base import AttendanceStrategy, TimeWindow, WindowDecision


class NormalStrategy(AttendanceStrategy):
    """Punch inside the window."""

    def decide_checkin(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        if now > window.anchor:
            late_by = minutes_between(window.anchor, now)
            return WindowDecision(
                ValidationResult.accept(
                    ValidationCode.VALID_BUT_LATE,
                    f"Check-in berhasil, terlambat {late_by} menit (masih dalam toleransi).",
                    is_late=True,
                    late_minutes=late_by,
                    **window.to_dict(),
                )
            )
        return WindowDecision(
            ValidationResult.accept(
                ValidationCode.VALID,
                "Check-in tepat waktu",
                is_late=False,
                late_minutes=0,
                **window.to_dict(),
            )
        )

    def decide_checkout(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        early_by = minutes_until(now, window.anchor)
        message = "Check-out berhasil"
        if early_by:
            message = f"Check-out berhasil, {early_by} menit sebelum shift berakhir (dalam toleransi)."
        return WindowDecision(
            ValidationResult.accept(
                ValidationCode.VALID_CHECKOUT,
                message,
                is_early_departure=early_by > 0,
                early_departure_minutes=early_by,
                is_overtime=False,
                **window.to_dict(),
            )
        )
