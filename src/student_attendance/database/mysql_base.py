"""Small helpers shared by the MySQL repositories."""
from __future__ import annotations

import re
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from .connection import DatabaseConnection

# "Duplicate entry 'x' for key 'students.uq_students_email'" (schema prefix since MySQL 8.0.19)
_DUP_KEY_RE = re.compile(r"for key '(?:\w+\.)?(?P<key>\w+)'")

Row = Dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One transaction per block: commit when it exits cleanly, roll back otherwise."""

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
        finally:
            cur.close()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Row]:
    return list(cur.fetchall() or [])


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql_errors.IntegrityError) and exc.errno == errorcode.ER_DUP_ENTRY


def duplicate_key_name(exc: BaseException) -> Optional[str]:
    """Unique index named in a duplicate-entry error, e.g. ``uq_students_email``."""

    found = _DUP_KEY_RE.search(str(getattr(exc, "msg", None) or exc))
    return found.group("key") if found else None


def mysql_time_to_hhmm(value: Any) -> str:
    """Format a TIME column as ``HH:MM``.

    The pure-Python connector hands TIME back as ``timedelta``; the C extension
    and some drivers give ``time`` or a string.
    """

    if isinstance(value, timedelta):
        minutes = int(value.total_seconds()) // 60 % (24 * 60)
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, str) and value.count(":") >= 1:
        hours, minutes = value.strip().split(":")[:2]
        return f"{int(hours):02d}:{int(minutes):02d}"
    raise TypeError(f"Unsupported TIME value: {value!r}")


def split_mysql_set(value: Any) -> List[str]:
    """Members of a SET column, which arrives as a set or a comma-joined string."""

    if not value:
        return []
    if isinstance(value, str):
        return [v for v in value.split(",") if v]
    return [str(v) for v in value]


def like_pattern(term: str) -> str:
    """``%term%`` with LIKE wildcards in ``term`` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
