from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from ..core.enums import ToleranceScope
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone
from .model import ToleranceSetting
from .repository import HolidayCalendar, ToleranceSettingRepository

_INT_FIELDS = (
    "check_in_early_tolerance",
    "check_in_late_tolerance",
    "check_out_early_tolerance",
    "check_out_late_tolerance",
    "weekend_check_in_tolerance",
    "weekend_check_out_tolerance",
    "holiday_check_in_tolerance",
    "holiday_check_out_tolerance",
)
_BOOL_FIELDS = (
    "allow_early_checkin",
    "allow_late_checkin",
    "allow_early_checkout",
    "allow_late_checkout",
    "weekend_different_tolerance",
    "holiday_different_tolerance",
    "require_schedule_match",
    "allow_emergency_override",
)


def _row_to_setting(r: Dict[str, Any]) -> ToleranceSetting:
    values: Dict[str, Any] = {
        "setting_id": int(r["id"]),
        "setting_name": r["setting_name"],
        "scope": ToleranceScope(r["scope_type"]),
        "scope_value": r.get("scope_value"),
        "priority": int(r.get("priority") or 0),
        "is_active": as_bool(r.get("is_active")),
    }
    for name in _INT_FIELDS:
        values[name] = int(r[name]) if r.get(name) is not None else None
    for name in _BOOL_FIELDS:
        if r.get(name) is not None:
            values[name] = as_bool(r[name])
    return ToleranceSetting(**values)


class MySQLToleranceSettingRepository(ToleranceSettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def first_active_for_scope(self, scope: ToleranceScope, scope_value: Optional[str] = None) -> Optional[ToleranceSetting]:
        columns = ", ".join(("id", "setting_name", "scope_type", "scope_value", "priority", "is_active") + _INT_FIELDS + _BOOL_FIELDS)
        clauses = ["scope_type=%s", "is_active=1"]
        params: list[object] = [scope.value]
        if scope_value is not None:
            clauses.append("scope_value=%s")
            params.append(str(scope_value))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {columns}
                FROM attendance_tolerance_settings
                WHERE {" AND ".join(clauses)}
                ORDER BY priority ASC, id ASC
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return _row_to_setting(r) if r else None


class MySQLHolidayCalendar(HolidayCalendar):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_holiday(self, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM holidays WHERE holiday_date=%s LIMIT 1", (day,))
            return fetchone(cur) is not None
