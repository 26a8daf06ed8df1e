from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateRecord, StorageUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, roll back on any error.

    Unique-key violations surface as ``DuplicateRecord`` so callers can retry as an
    update. Every other connector error becomes ``StorageUnavailable``.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateRecord(str(exc)) from exc
        logger.error("Integrity error: %s", exc)
        raise StorageUnavailable("Database rejected the operation") from exc
    except mysql.connector.Error as exc:
        conn.rollback()
        logger.error("Database error: %s", exc)
        raise StorageUnavailable("Database is unavailable") from exc
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


def in_clause(values: Sequence[int]) -> Tuple[str, Tuple[int, ...]]:
    """Build ``(%s,%s,...)`` for a non-empty id list; values stay parameters."""
    if not values:
        raise ValueError("in_clause() needs at least one value")
    ids = tuple(int(v) for v in values)
    return "(" + ",".join(["%s"] * len(ids)) + ")", ids


def as_float(value: Any) -> Optional[float]:
    """DECIMAL columns come back as Decimal; the domain works in float."""
    if value is None:
        return None
    return float(value)


def as_optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return bool(int(value))
