"""Time-of-day parsing for shift template fields.

Shift times reach the engine in several shapes: ``HH:MM``, ``HH:MM:SS``, a full datetime
string, a ``datetime.time``/``datetime.datetime`` object, or a ``timedelta`` (mysql-connector
returns TIME columns that way). ``parse_time_of_day`` normalises all of them and reports
anything else as an error value instead of raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Optional

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[ T](\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$"
)

ACCEPTED_FORMATS = ("HH:MM", "HH:MM:SS", "YYYY-MM-DD HH:MM[:SS]", "YYYY-MM-DDTHH:MM[:SS][.ffffff][tz]")


@dataclass(frozen=True)
class ParsedTime:
    value: Optional[time] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None

    def or_default(self, default: time) -> time:
        return self.value if self.value is not None else default


def _from_parts(raw: str, hours: str, minutes: str, seconds: Optional[str]) -> ParsedTime:
    h, m, s = int(hours), int(minutes), int(seconds or 0)
    if h > 23 or m > 59 or s > 59:
        return ParsedTime(error=f"Out of range time value: {raw!r}")
    return ParsedTime(value=time(hour=h, minute=m, second=s))


def parse_time_of_day(value: Any) -> ParsedTime:
    if value is None:
        return ParsedTime(error="Missing time value")

    if isinstance(value, datetime):
        return ParsedTime(value=value.time().replace(microsecond=0, tzinfo=None))

    if isinstance(value, time):
        return ParsedTime(value=value.replace(microsecond=0, tzinfo=None))

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        return ParsedTime(
            value=time(hour=total_seconds // 3600, minute=(total_seconds % 3600) // 60, second=total_seconds % 60)
        )

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return ParsedTime(error="Empty time string")
        for pattern in (_CLOCK_RE, _DATETIME_RE):
            match = pattern.match(raw)
            if match:
                return _from_parts(raw, *match.groups())
        return ParsedTime(error=f"Unrecognised time format {raw!r}; expected one of {', '.join(ACCEPTED_FORMATS)}")

    return ParsedTime(error=f"Unsupported time value type: {type(value)!r}")


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time_string(minutes: int) -> str:
    minutes = minutes % 1440
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
