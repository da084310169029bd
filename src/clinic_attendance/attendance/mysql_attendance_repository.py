from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateOpenSessionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import AttendanceRecord, AttendanceViolation
from .repository import AttendanceRepository, ViolationRepository

_COLUMNS = """
    id, user_id, date, jadwal_jaga_id, time_in, time_out,
    logical_time_in, logical_time_out, logical_work_minutes,
    shift_start, shift_end, shift_sequence, metadata
"""


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    minutes = r.get("logical_work_minutes")
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        user_id=int(r["user_id"]),
        work_date=r["date"],
        time_in=r["time_in"],
        schedule_assignment_id=int(r["jadwal_jaga_id"]) if r.get("jadwal_jaga_id") is not None else None,
        time_out=r.get("time_out"),
        logical_time_in=r.get("logical_time_in"),
        logical_time_out=r.get("logical_time_out"),
        logical_work_minutes=int(minutes) if minutes is not None else None,
        shift_start=r.get("shift_start"),
        shift_end=r.get("shift_end"),
        shift_sequence=int(r.get("shift_sequence") or 1),
        metadata=load_json(r.get("metadata")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_open_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE user_id=%s AND time_out IS NULL
                ORDER BY time_in DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE user_id=%s AND date=%s
                ORDER BY time_in ASC
                """,
                (int(user_id), work_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def latest_for_user(self, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE user_id=%s
                ORDER BY time_in DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def is_assignment_used(self, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS used FROM attendances WHERE jadwal_jaga_id=%s LIMIT 1", (int(assignment_id),))
            return fetchone(cur) is not None

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
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock serialises concurrent check-ins; the open_guard unique key catches the rest.
            cur.execute(
                "SELECT id FROM attendances WHERE user_id=%s AND time_out IS NULL FOR UPDATE",
                (int(user_id),),
            )
            if fetchone(cur):
                raise DuplicateOpenSessionError(f"User {user_id} already has an open attendance record")

            try:
                cur.execute(
                    """
                    INSERT INTO attendances(
                        user_id, date, jadwal_jaga_id, time_in, logical_time_in,
                        shift_start, shift_end, shift_sequence, metadata
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(user_id),
                        work_date,
                        schedule_assignment_id,
                        time_in,
                        logical_time_in,
                        shift_start,
                        shift_end,
                        int(shift_sequence),
                        dump_json(metadata),
                    ),
                )
            except mysql.connector.IntegrityError as exc:
                if exc.errno == errorcode.ER_DUP_ENTRY:
                    raise DuplicateOpenSessionError(f"User {user_id} already has an open attendance record") from exc
                raise
            return int(cur.lastrowid)

    def update_checkout(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        logical_time_out: Optional[datetime],
        logical_work_minutes: Optional[int],
        metadata: dict[str, Any],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendances
                SET time_out=%s, logical_time_out=%s, logical_work_minutes=%s, metadata=%s
                WHERE id=%s
                """,
                (time_out, logical_time_out, logical_work_minutes, dump_json(metadata), int(attendance_id)),
            )
            return cur.rowcount > 0

    def close_if_open(
        self,
        *,
        attendance_id: int,
        time_out: datetime,
        logical_time_out: Optional[datetime],
        logical_work_minutes: int,
        metadata: dict[str, Any],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendances
                SET time_out=%s, logical_time_out=%s, logical_work_minutes=%s, metadata=%s
                WHERE id=%s AND time_out IS NULL
                """,
                (time_out, logical_time_out, int(logical_work_minutes), dump_json(metadata), int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_open(self, *, up_to: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendances
                WHERE time_out IS NULL AND date <= %s
                ORDER BY date ASC, time_in ASC
                """,
                (up_to,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]


class MySQLViolationRepository(ViolationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, violation: AttendanceViolation) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_violations(
                    user_id, attendance_id, violation_type, violation_minutes,
                    severity, is_emergency_override, notes, occurred_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(violation.user_id),
                    violation.attendance_id,
                    violation.violation_type.value,
                    int(violation.violation_minutes),
                    violation.severity.value,
                    1 if violation.is_emergency_override else 0,
                    violation.notes,
                    violation.occurred_at,
                ),
            )
            return int(cur.lastrowid)
