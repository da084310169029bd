from __future__ import annotations

from typing import Any, Optional, Sequence

from ...common.time_parsing import parse_time_of_day, time_to_minutes
from ...core.constants import MINUTES_PER_DAY, NOON_MINUTES
from ...shifts.model import BreakInterval
from .base import DurationCalculator, DurationResult


def _minutes(value: Any) -> tuple[Optional[int], Optional[str]]:
    parsed = parse_time_of_day(value)
    if not parsed.ok:
        return None, parsed.error
    return time_to_minutes(parsed.value), None


class EffectiveDurationCalculator(DurationCalculator):
    """Worked minutes clipped to the shift window, minus break overlap.

    Arriving early or leaving late never adds time; check-out before check-in yields 0.
    Pure function of its inputs.
    """

    def calculate(
        self,
        check_in: Any,
        check_out: Any,
        shift_start: Any,
        shift_end: Any,
        breaks: Sequence[BreakInterval] = (),
    ) -> DurationResult:
        labels = (("check_in", check_in), ("check_out", check_out), ("shift_start", shift_start), ("shift_end", shift_end))
        values: dict[str, int] = {}
        for label, raw in labels:
            if raw is None:
                return DurationResult.failure(f"Missing {label}")
            minutes, error = _minutes(raw)
            if minutes is None:
                return DurationResult.failure(f"Invalid {label}: {error}")
            values[label] = minutes

        ci, co = values["check_in"], values["check_out"]
        ss, se = values["shift_start"], values["shift_end"]
        raw_shift_end = se

        overnight = se < ss
        if overnight:
            se += MINUTES_PER_DAY
            if co < NOON_MINUTES:
                co += MINUTES_PER_DAY
            # A punch after midnight but before the shift ends belongs to the second day.
            if ci <= raw_shift_end:
                ci += MINUTES_PER_DAY

        effective_start = max(ci, ss)
        effective_end = min(co, se)
        raw_minutes = max(0, effective_end - effective_start)

        overlap = 0
        configured = 0
        for brk in breaks:
            bs, be = time_to_minutes(brk.start), time_to_minutes(brk.end)
            if be < bs:
                be += MINUTES_PER_DAY
            if overnight and be <= ss and bs + MINUTES_PER_DAY < se:
                bs += MINUTES_PER_DAY
                be += MINUTES_PER_DAY
            configured += be - bs
            if raw_minutes:
                overlap += max(0, min(be, effective_end) - max(bs, effective_start))

        final = max(0, raw_minutes - overlap)
        scheduled = max(0, se - ss - configured)
        shortage = max(0, scheduled - final)
        percentage = round(final / scheduled * 100, 1) if scheduled > 0 else 0.0

        return DurationResult(
            shift_start_minutes=ss,
            shift_end_minutes=se,
            effective_start_minutes=effective_start,
            effective_end_minutes=effective_end,
            raw_minutes=raw_minutes,
            break_overlap_minutes=overlap,
            configured_break_minutes=configured,
            final_minutes=final,
            scheduled_minutes=scheduled,
            shortage_minutes=shortage,
            attendance_percentage=percentage,
            is_overnight=overnight,
            flags={
                "early_checkin_ignored": ci < ss,
                "late_checkout_ignored": co > se,
                "late_arrival": ci > ss,
                "early_departure": co < se,
            },
        )
