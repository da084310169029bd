from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ..core.enums import ToleranceScope
from .model import ToleranceSetting


class ToleranceSettingRepository(Protocol):
    def first_active_for_scope(self, scope: ToleranceScope, scope_value: Optional[str] = None) -> Optional[ToleranceSetting]:
        """Active setting for the scope with the lowest ``priority`` value, if any."""

        raise NotImplementedError


class HolidayCalendar(Protocol):
    def is_holiday(self, day: date) -> bool:
        raise NotImplementedError


class NoHolidays:
    def is_holiday(self, day: date) -> bool:
        return False
