from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceViolation


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        """Records of the day, oldest check-in first."""

        raise NotImplementedError

    def latest_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        """Most recent record by check-in time, regardless of work date."""

        raise NotImplementedError

    def is_assignment_used(self, assignment_id: int) -> bool:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        time_in: datetime,
        logical_time_in: datetime,
        schedule_assignment_id: Optional[int],
        shift_start: Optional[datetime],
        shift_end: Optional[datetime],
        shift_sequence: int,
        metadata: dict[str, Any],
    ) -> int:
        """Insert an open record.

        Must raise DuplicateOpenSessionError when the user already has an open record; the
        check and the insert have to happen in one transaction.
        """

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        logical_time_out: Optional[datetime],
        logical_work_minutes: Optional[int],
        metadata: dict[str, Any],
    ) -> bool:
        raise NotImplementedError

    def close_if_open(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        logical_time_out: Optional[datetime],
        logical_work_minutes: int,
        metadata: dict[str, Any],
    ) -> bool:
        """Close the record only while time_out is still NULL. Returns False if someone else closed it."""

        raise NotImplementedError

    def list_open(self, *, up_to: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError


class ViolationRepository(Protocol):
    def record(self, violation: AttendanceViolation) -> int:
        raise NotImplementedError
