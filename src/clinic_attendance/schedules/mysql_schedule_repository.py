from __future__ import annotations

from datetime import date
from typing import Any, Dict, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ScheduleAssignment
from .repository import ScheduleRepository


def _row_to_assignment(r: Dict[str, Any]) -> ScheduleAssignment:
    template_id = r.get("shift_template_id")
    location_id = r.get("work_location_id")
    return ScheduleAssignment(
        assignment_id=int(r["id"]),
        user_id=int(r["pegawai_id"]),
        work_date=r["tanggal_jaga"],
        shift_template_id=int(template_id) if template_id is not None else None,
        status=str(r.get("status_jaga") or "aktif").lower(),
        sequence_number=int(r.get("shift_sequence") or 1),
        custom_start=r.get("jam_jaga_custom"),
        custom_end=r.get("jam_pulang_custom"),
        work_location_id=int(location_id) if location_id is not None else None,
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user_and_date(self, user_id: int, work_date: date) -> Sequence[ScheduleAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, pegawai_id, tanggal_jaga, shift_template_id, status_jaga,
                       shift_sequence, jam_jaga_custom, jam_pulang_custom, work_location_id
                FROM jadwal_jagas
                WHERE pegawai_id=%s AND tanggal_jaga=%s
                ORDER BY shift_sequence ASC, id ASC
                """,
                (int(user_id), work_date),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def assign_template(self, assignment_id: int, template_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE jadwal_jagas SET shift_template_id=%s WHERE id=%s AND shift_template_id IS NULL",
                (int(template_id), int(assignment_id)),
            )
            return cur.rowcount > 0
