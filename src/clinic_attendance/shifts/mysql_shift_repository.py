from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ShiftTemplate
from .repository import ShiftTemplateRepository

_COLUMNS = "id, nama_shift, jam_masuk, jam_pulang, durasi_istirahat"


def _row_to_template(r: Dict[str, Any]) -> ShiftTemplate:
    # Times stay raw here; ShiftTemplate.start/end do the parsing.
    break_minutes = r.get("durasi_istirahat")
    return ShiftTemplate(
        template_id=int(r["id"]),
        name=r["nama_shift"],
        start_time=r.get("jam_masuk"),
        end_time=r.get("jam_pulang"),
        break_duration_minutes=int(break_minutes) if break_minutes is not None else None,
    )


class MySQLShiftTemplateRepository(ShiftTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shift_templates ORDER BY id")
            return [_row_to_template(r) for r in fetchall(cur)]

    def get_by_id(self, template_id: int) -> Optional[ShiftTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shift_templates WHERE id=%s", (int(template_id),))
            r = fetchone(cur)
            return _row_to_template(r) if r else None
