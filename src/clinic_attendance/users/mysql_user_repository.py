from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone
from .model import User
from .repository import UserRepository


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.id, u.name, r.name AS role, u.is_active, u.work_location_id
                FROM users u
                LEFT JOIN roles r ON r.id = u.role_id
                WHERE u.id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            location_id = r.get("work_location_id")
            return User(
                user_id=int(r["id"]),
                name=r["name"],
                role=r.get("role") or "",
                is_active=as_bool(r.get("is_active")),
                work_location_id=int(location_id) if location_id is not None else None,
            )
