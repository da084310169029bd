from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import ViolationSeverity, ViolationType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one presensi row (a check-in, later closed by a check-out).

    ``logical_*`` fields hold the shift-clamped times used for payroll; ``metadata`` keeps
    the validation trace, tolerance source and penalty flags.
    """

    attendance_id: int
    user_id: int
    work_date: date
    time_in: datetime
    schedule_assignment_id: Optional[int] = None
    time_out: Optional[datetime] = None
    logical_time_in: Optional[datetime] = None
    logical_time_out: Optional[datetime] = None
    logical_work_minutes: Optional[int] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    shift_sequence: int = 1
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.time_out is None


def severity_for(minutes: int) -> ViolationSeverity:
    if minutes <= 5:
        return ViolationSeverity.MINOR
    if minutes <= 15:
        return ViolationSeverity.MODERATE
    if minutes <= 30:
        return ViolationSeverity.MAJOR
    return ViolationSeverity.CRITICAL


@dataclass(frozen=True)
class AttendanceViolation:
    """Append-only audit entry for a rejected or penalised attendance action."""

    user_id: int
    violation_type: ViolationType
    violation_minutes: int
    severity: ViolationSeverity
    occurred_at: datetime
    attendance_id: Optional[int] = None
    is_emergency_override: bool = False
    notes: Optional[str] = None

    @classmethod
    def build(
        cls,
        *,
        user_id: int,
        violation_type: ViolationType,
        minutes: int,
        occurred_at: datetime,
        attendance_id: Optional[int] = None,
        is_emergency_override: bool = False,
        notes: Optional[str] = None,
    ) -> "AttendanceViolation":
        minutes = max(0, int(minutes))
        return cls(
            user_id=user_id,
            violation_type=violation_type,
            violation_minutes=minutes,
            severity=severity_for(minutes),
            occurred_at=occurred_at,
            attendance_id=attendance_id,
            is_emergency_override=is_emergency_override,
            notes=notes,
        )
