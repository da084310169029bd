from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import minutes_between, now_local
from ..core.constants import DEFAULT_SHIFT_LENGTH_HOURS, PENALTY_WORK_MINUTES
from ..core.enums import AttendanceAction, ViolationType
from ..core.exceptions import StorageUnavailableError
from ..tolerance.resolver import ToleranceResolver
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, AttendanceViolation
from .repository import AttendanceRepository, ViolationRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutoCloseOutcome:
    attendance_id: int
    user_id: int
    max_checkout_time: datetime
    exceeded_by_minutes: int
    time_out: datetime
    closed: bool


@dataclass
class AutoCloseReport:
    checked: int = 0
    outcomes: list[AutoCloseOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def closed(self) -> int:
        return sum(1 for o in self.outcomes if o.closed)


class AutoCloseService:
    """Close attendance left open past shift end + late-checkout tolerance.

    Penalty policy: the record keeps one minute of work (time_out = time_in + 1 minute). A
    record is only closed while its time_out is still NULL, so a concurrent check-out wins.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        violations: ViolationRepository,
        tolerance: ToleranceResolver,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._violations = violations
        self._tolerance = tolerance
        self._clock = clock

    def run(self, now: Optional[datetime] = None, *, dry_run: bool = False) -> AutoCloseReport:
        now = now or self._clock()
        report = AutoCloseReport(dry_run=dry_run)

        for record in self._attendance.list_open(up_to=now.date()):
            report.checked += 1
            outcome = self._process(record, now, dry_run=dry_run)
            if outcome is not None:
                report.outcomes.append(outcome)

        log.info(
            "Auto-close sweep checked=%s overdue=%s closed=%s dry_run=%s",
            report.checked,
            len(report.outcomes),
            report.closed,
            dry_run,
        )
        return report

    def _process(self, record: AttendanceRecord, now: datetime, *, dry_run: bool) -> Optional[AutoCloseOutcome]:
        user = self._users.get_by_id(record.user_id) or User(user_id=record.user_id, name="", role="")
        tolerance = self._tolerance.resolve(user, AttendanceAction.CHECKOUT, record.time_in)

        shift_end = record.shift_end or record.time_in + timedelta(hours=DEFAULT_SHIFT_LENGTH_HOURS)
        max_checkout = shift_end + timedelta(minutes=tolerance.late_minutes)
        if now <= max_checkout:
            return None

        exceeded = minutes_between(max_checkout, now)
        time_out = min(record.time_in + timedelta(minutes=PENALTY_WORK_MINUTES), now)

        if dry_run:
            log.info("Would auto-close attendance=%s user=%s exceeded=%s", record.attendance_id, record.user_id, exceeded)
            return AutoCloseOutcome(record.attendance_id, record.user_id, max_checkout, exceeded, time_out, closed=False)

        metadata = dict(record.metadata)
        metadata.update(
            auto_closed=True,
            penalty_applied=True,
            auto_closed_at=now.isoformat(),
            max_checkout_time=max_checkout.isoformat(),
            exceeded_by_minutes=exceeded,
            tolerance_minutes=tolerance.late_minutes,
            tolerance_source=tolerance.source.value,
            penalty_reason="Tidak check-out hingga batas toleransi",
        )

        closed = self._attendance.close_if_open(
            attendance_id=record.attendance_id,
            time_out=time_out,
            logical_time_out=time_out,
            logical_work_minutes=PENALTY_WORK_MINUTES,
            metadata=metadata,
        )
        if not closed:
            log.info("Attendance=%s closed concurrently, skipping penalty", record.attendance_id)
            return AutoCloseOutcome(record.attendance_id, record.user_id, max_checkout, exceeded, time_out, closed=False)

        log.warning(
            "Auto-closed attendance=%s user=%s exceeded=%s min, penalty applied",
            record.attendance_id,
            record.user_id,
            exceeded,
        )
        try:
            self._violations.record(
                AttendanceViolation.build(
                    user_id=record.user_id,
                    violation_type=ViolationType.MISSING_CHECKOUT,
                    minutes=exceeded,
                    occurred_at=now,
                    attendance_id=record.attendance_id,
                    notes=f"Auto-close setelah melewati batas check-out {max_checkout:%H:%M}",
                )
            )
        except StorageUnavailableError:
            log.warning("Could not store missing-checkout violation attendance=%s", record.attendance_id, exc_info=True)

        return AutoCloseOutcome(record.attendance_id, record.user_id, max_checkout, exceeded, time_out, closed=True)
