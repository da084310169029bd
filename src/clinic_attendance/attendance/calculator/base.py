from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from ...common.datetime_utils import format_minutes
from ...common.time_parsing import minutes_to_time_string
from ...shifts.model import BreakInterval


@dataclass(frozen=True)
class DurationResult:
    """Effective worked time for one shift, in minutes since midnight of the shift start.

    Minute positions past 1440 belong to the next calendar day (overnight shifts).
    """

    error: bool = False
    error_message: Optional[str] = None
    shift_start_minutes: int = 0
    shift_end_minutes: int = 0
    effective_start_minutes: int = 0
    effective_end_minutes: int = 0
    raw_minutes: int = 0
    break_overlap_minutes: int = 0
    configured_break_minutes: int = 0
    final_minutes: int = 0
    scheduled_minutes: int = 0
    shortage_minutes: int = 0
    attendance_percentage: float = 0.0
    is_overnight: bool = False
    flags: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str) -> "DurationResult":
        return cls(error=True, error_message=message)

    @property
    def final_hours(self) -> str:
        return format_minutes(self.final_minutes)

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": True, "message": self.error_message}
        return {
            "error": False,
            "effective_start": minutes_to_time_string(self.effective_start_minutes),
            "effective_end": minutes_to_time_string(self.effective_end_minutes),
            "raw_minutes": self.raw_minutes,
            "break_overlap_minutes": self.break_overlap_minutes,
            "final_minutes": self.final_minutes,
            "final_hours": self.final_hours,
            "scheduled_minutes": self.scheduled_minutes,
            "shortage_minutes": self.shortage_minutes,
            "attendance_percentage": self.attendance_percentage,
            "is_overnight": self.is_overnight,
            "flags": dict(self.flags),
        }


@dataclass(frozen=True)
class DailyDurationSummary:
    shift_count: int
    final_minutes: int
    scheduled_minutes: int
    shortage_minutes: int
    attendance_percentage: float

    @property
    def final_hours(self) -> str:
        return format_minutes(self.final_minutes)


class DurationCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked-time rules)."""

    @abstractmethod
    def calculate(
        self,
        check_in: Any,
        check_out: Any,
        shift_start: Any,
        shift_end: Any,
        breaks: Sequence[BreakInterval] = (),
    ) -> DurationResult:
        raise NotImplementedError

    def aggregate(self, results: Iterable[DurationResult]) -> DailyDurationSummary:
        """Sum several shifts of one day; error results are skipped."""
        ok = [r for r in results if not r.error]
        final = sum(r.final_minutes for r in ok)
        scheduled = sum(r.scheduled_minutes for r in ok)
        return DailyDurationSummary(
            shift_count=len(ok),
            final_minutes=final,
            scheduled_minutes=scheduled,
            shortage_minutes=sum(r.shortage_minutes for r in ok),
            attendance_percentage=round(final / scheduled * 100, 1) if scheduled > 0 else 0.0,
        )
