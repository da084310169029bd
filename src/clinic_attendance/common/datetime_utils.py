from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59))


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored (negative if end is before start)."""
    return math.floor((end - start).total_seconds() / 60)


def minutes_until(now: datetime, target: datetime) -> int:
    """Minutes left until target, rounded up so a pending wait never shows as 0."""
    return max(0, math.ceil((target - now).total_seconds() / 60))


def shift_bounds(work_date: date, start: time, end: time) -> tuple[datetime, datetime]:
    """Anchor a shift's clock times to a work date; overnight shifts end on the next day."""
    shift_start = datetime.combine(work_date, start)
    shift_end = datetime.combine(work_date, end)
    if shift_end < shift_start:
        shift_end += timedelta(days=1)
    return shift_start, shift_end


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60}j {minutes % 60}m"
