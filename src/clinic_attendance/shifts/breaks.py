from __future__ import annotations

from datetime import time
from typing import Optional

from ..common.time_parsing import minutes_to_time_string, parse_time_of_day, time_to_minutes
from ..core.constants import MINUTES_PER_DAY
from .model import BreakInterval, ShiftTemplate

# Clinic-wide break slots, keyed by a word found in the shift name.
STANDARD_BREAKS = {
    "pagi": (time(12, 0), time(13, 0)),
    "siang": (time(15, 30), time(16, 0)),
    "sore": (time(18, 0), time(18, 30)),
    "malam": (time(0, 0), time(0, 30)),
}


def _span(start: time, end: time) -> tuple[int, int]:
    s, e = time_to_minutes(start), time_to_minutes(end)
    if e < s:
        e += MINUTES_PER_DAY
    return s, e


def _within(shift: tuple[int, int], brk: tuple[int, int]) -> bool:
    s, e = shift
    for offset in (0, MINUTES_PER_DAY):
        bs, be = brk[0] + offset, brk[1] + offset
        if bs >= s and be <= e:
            return True
    return False


def centred_break(start: time, end: time, duration_minutes: int) -> Optional[BreakInterval]:
    s, e = _span(start, end)
    if duration_minutes <= 0 or duration_minutes >= e - s:
        return None
    break_start = s + (e - s - duration_minutes) // 2
    return BreakInterval(
        start=parse_time_of_day(minutes_to_time_string(break_start)).value,
        end=parse_time_of_day(minutes_to_time_string(break_start + duration_minutes)).value,
    )


def standard_break_times(shift_name: str, start: time, end: time) -> list[BreakInterval]:
    """Break slots for a shift, picked by its name, kept only if they fall inside the shift."""
    name = (shift_name or "").lower()
    shift = _span(start, end)
    out: list[BreakInterval] = []
    for keyword, (b_start, b_end) in STANDARD_BREAKS.items():
        if keyword in name and _within(shift, _span(b_start, b_end)):
            out.append(BreakInterval(start=b_start, end=b_end))
    return out


def breaks_for_template(template: Optional[ShiftTemplate], start: time, end: time) -> list[BreakInterval]:
    """Breaks for a shift: standard named slots first, else a centred break of the template's duration."""
    if template is None:
        return []
    standard = standard_break_times(template.name, start, end)
    if standard:
        return standard
    if template.break_duration_minutes:
        centred = centred_break(start, end, int(template.break_duration_minutes))
        return [centred] if centred else []
    return []
