from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import time
from typing import Any, Dict, List, Optional

import mysql.connector

from ..common.time_parsing import parse_time_of_day
from ..core.exceptions import StorageUnavailableError
from .connection import DatabaseConnection

log = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, roll back on error.

    Connector errors surface as StorageUnavailableError so callers only deal with domain errors.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        log.warning("MySQL connection failed: %s", exc)
        raise StorageUnavailableError(str(exc)) from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        log.warning("MySQL query failed: %s", exc)
        raise StorageUnavailableError(str(exc)) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as datetime.time, datetime.timedelta or a string.
    Unparsable values come back as None; callers apply their own fallback.
    """
    parsed = parse_time_of_day(value)
    if not parsed.ok and value is not None:
        log.warning("Unparsable TIME value %r: %s", value, parsed.error)
    return parsed.value


def load_json(value: Any) -> dict:
    """JSON columns come back as str or bytes depending on the connector."""
    if not value:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


def dump_json(value: Optional[dict]) -> str:
    return json.dumps(value or {}, default=str)


def as_bool(value: Any) -> bool:
    return bool(int(value)) if value is not None else False
