from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import ViolationType
from ...core.result import ValidationResult
from ...tolerance.model import ToleranceResult


@dataclass(frozen=True)
class TimeWindow:
    """Allowed punch window around a shift boundary: [anchor - early, anchor + late]."""

    anchor: datetime
    early_minutes: int
    late_minutes: int
    tolerance_source: str = "default"
    # Whether a punch before/after the window may still go through (None: built-in rule).
    allow_early: Optional[bool] = None
    allow_late: Optional[bool] = None

    @classmethod
    def around(cls, anchor: datetime, tolerance: ToleranceResult) -> "TimeWindow":
        return cls(
            anchor=anchor,
            early_minutes=tolerance.early_minutes,
            late_minutes=tolerance.late_minutes,
            tolerance_source=tolerance.source.value,
            allow_early=tolerance.allow_early,
            allow_late=tolerance.allow_late,
        )

    def opened(self) -> "TimeWindow":
        """Same window with both out-of-window gates open (emergency override)."""
        return replace(self, allow_early=True, allow_late=True)

    @property
    def earliest(self) -> datetime:
        return self.anchor - timedelta(minutes=self.early_minutes)

    @property
    def latest(self) -> datetime:
        return self.anchor + timedelta(minutes=self.late_minutes)

    def to_dict(self) -> dict:
        return {
            "window_start": self.earliest.strftime("%H:%M:%S"),
            "window_end": self.latest.strftime("%H:%M:%S"),
            "anchor": self.anchor.strftime("%H:%M:%S"),
            "early_tolerance": self.early_minutes,
            "late_tolerance": self.late_minutes,
            "tolerance_source": self.tolerance_source,
        }


@dataclass(frozen=True)
class WindowDecision:
    result: ValidationResult
    violation_type: Optional[ViolationType] = None
    violation_minutes: int = 0


class AttendanceStrategy(ABC):
    """Strategy Pattern: decide a punch against its time window."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, now: datetime, window: TimeWindow) -> WindowDecision:
        raise NotImplementedError
