from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional

from ..common.time_parsing import minutes_to_time_string, time_to_minutes
from ..core.enums import ScheduleStatus
from ..locations.model import WorkLocation
from ..shifts.model import BreakInterval, ShiftTemplate


@dataclass(frozen=True)
class ScheduleAssignment:
    """Domain entity: jadwal jaga, one shift assigned to a user on a date."""

    assignment_id: int
    user_id: int
    work_date: date
    shift_template_id: Optional[int]
    status: str = ScheduleStatus.AKTIF.value
    sequence_number: int = 1
    custom_start: Any = None
    custom_end: Any = None
    work_location_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return str(self.status).lower() == ScheduleStatus.AKTIF.value


@dataclass(frozen=True)
class ScheduledShift:
    """A schedule assignment with its times resolved and anchored to the work date."""

    assignment: ScheduleAssignment
    template: Optional[ShiftTemplate]
    start: time
    end: time
    starts_at: datetime
    ends_at: datetime
    work_location: Optional[WorkLocation] = None
    breaks: list[BreakInterval] = field(default_factory=list)
    fallback_used: bool = False
    template_repaired: bool = False

    @property
    def name(self) -> str:
        return self.template.name if self.template else "Default"

    @property
    def is_overnight(self) -> bool:
        return self.end < self.start

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule_assignment_id": self.assignment.assignment_id,
            "shift_template_id": self.template.template_id if self.template else None,
            "shift_name": self.name,
            "shift_start": minutes_to_time_string(time_to_minutes(self.start)),
            "shift_end": minutes_to_time_string(time_to_minutes(self.end)),
            "sequence_number": self.assignment.sequence_number,
            "is_overnight": self.is_overnight,
            "work_location_id": self.work_location.location_id if self.work_location else None,
            "fallback_used": self.fallback_used,
            "template_repaired": self.template_repaired,
        }
