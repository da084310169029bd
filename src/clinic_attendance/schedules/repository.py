from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import ScheduleAssignment


class ScheduleRepository(Protocol):
    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[ScheduleAssignment]:
        """All assignments of the day ordered by sequence number."""

        raise NotImplementedError

    def assign_template(self, assignment_id: int, template_id: int) -> bool:
        """Link a template to an assignment that lost its own (auto-repair)."""

        raise NotImplementedError
