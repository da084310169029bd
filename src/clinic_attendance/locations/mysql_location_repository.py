from __future__ import annotations

from typing import Any, Dict, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone, load_json
from .model import WorkLocation
from .repository import WorkLocationRepository

_COLUMNS = """
    id, name, latitude, longitude, radius_meters, is_active,
    checkin_before_shift_minutes, late_tolerance_minutes,
    early_departure_tolerance_minutes, checkout_after_shift_minutes,
    tolerance_settings
"""


def _opt_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_location(r: Dict[str, Any]) -> WorkLocation:
    return WorkLocation(
        location_id=int(r["id"]),
        name=r["name"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_meters=_opt_int(r.get("radius_meters")),
        is_active=as_bool(r.get("is_active")),
        checkin_before_shift_minutes=_opt_int(r.get("checkin_before_shift_minutes")),
        late_tolerance_minutes=_opt_int(r.get("late_tolerance_minutes")),
        early_departure_tolerance_minutes=_opt_int(r.get("early_departure_tolerance_minutes")),
        checkout_after_shift_minutes=_opt_int(r.get("checkout_after_shift_minutes")),
        tolerance_settings=load_json(r.get("tolerance_settings")),
    )


class MySQLWorkLocationRepository(WorkLocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, location_id: int) -> Optional[WorkLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_locations WHERE id=%s", (int(location_id),))
            r = fetchone(cur)
            return _row_to_location(r) if r else None

    def first_active(self) -> Optional[WorkLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_locations WHERE is_active=1 ORDER BY id LIMIT 1")
            r = fetchone(cur)
            return _row_to_location(r) if r else None
