from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .strategies.base import AttendanceStrategy, TimeWindow
from .strategies.early_strategy import EarlyStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the strategy for where a punch falls relative to its window.

    Both bounds are inclusive.
    """

    def for_punch(self, *, now: datetime, window: TimeWindow) -> AttendanceStrategy:
        if now < window.earliest:
            return EarlyStrategy()
        if now > window.latest:
            return LateStrategy()
        return NormalStrategy()

    def decide_checkin(self, *, now: datetime, window: TimeWindow):
        return self.for_punch(now=now, window=window).decide_checkin(now=now, window=window)

    def decide_checkout(self, *, now: datetime, window: TimeWindow):
        return self.for_punch(now=now, window=window).decide_checkout(now=now, window=window)
