from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Any, Optional

from ..common.time_parsing import ParsedTime, parse_time_of_day


@dataclass(frozen=True)
class BreakInterval:
    start: time
    end: time

    @property
    def crosses_midnight(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True)
class ShiftTemplate:
    """Domain entity: shift template (nama shift, jam mulai/selesai).

    ``start_time``/``end_time`` keep whatever the store returned (``HH:MM`` string, full
    datetime string, ``time`` or ``timedelta``); read them through ``start``/``end``.
    """

    template_id: int
    name: str
    start_time: Any
    end_time: Any
    break_duration_minutes: Optional[int] = None

    @property
    def start(self) -> ParsedTime:
        return parse_time_of_day(self.start_time)

    @property
    def end(self) -> ParsedTime:
        return parse_time_of_day(self.end_time)

    @property
    def is_overnight(self) -> bool:
        start, end = self.start, self.end
        return start.ok and end.ok and end.value < start.value
