from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import minutes_until
from ...core.enums import ValidationCode, ViolationType
from ...core.result import ValidationResult
from .base import AttendanceStrategy, TimeWindow, WindowDecision


class EarlyStrategy(AttendanceStrategy):
    """Punch before the window opens: rejected unless the window's early gate is open.

    A punch let through by the gate still carries its violation.
    """

    def decide_checkin(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        wait = minutes_until(now, window.earliest)
        if window.allow_early:
            return WindowDecision(
                ValidationResult.accept(
                    ValidationCode.VALID,
                    f"Check-in {wait} menit sebelum batas toleransi, diizinkan oleh pengaturan toleransi.",
                    is_late=False,
                    late_minutes=0,
                    outside_window=True,
                    **window.to_dict(),
                ),
                ViolationType.EARLY_CHECKIN,
                wait,
            )
        return WindowDecision(
            ValidationResult.reject(
                ValidationCode.TOO_EARLY,
                f"Terlalu awal untuk check-in. Anda dapat check-in mulai pukul {window.earliest:%H:%M} "
                f"({wait} menit lagi).",
                minutes_remaining=wait,
                **window.to_dict(),
            ),
            ViolationType.EARLY_CHECKIN,
            wait,
        )

    def decide_checkout(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        wait = minutes_until(now, window.earliest)
        if window.allow_early:
            early_by = minutes_until(now, window.anchor)
            return WindowDecision(
                ValidationResult.accept(
                    ValidationCode.VALID_CHECKOUT,
                    f"Check-out {early_by} menit sebelum shift berakhir, diizinkan oleh pengaturan toleransi.",
                    is_early_departure=True,
                    early_departure_minutes=early_by,
                    is_overtime=False,
                    outside_window=True,
                    **window.to_dict(),
                ),
                ViolationType.EARLY_CHECKOUT,
                wait,
            )
        return WindowDecision(
            ValidationResult.reject(
                ValidationCode.CHECKOUT_TOO_EARLY,
                f"Check-out terlalu awal. Shift berakhir pukul {window.anchor:%H:%M}, check-out paling cepat "
                f"pukul {window.earliest:%H:%M} ({wait} menit lagi).",
                minutes_remaining=wait,
                **window.to_dict(),
            ),
            ViolationType.EARLY_CHECKOUT,
            wait,
        )
