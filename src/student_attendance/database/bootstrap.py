"""Create the database, apply ``schema.sql`` and load ``seed.sql``."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Mapping, Sequence, Union

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REQUIRED_TABLES = ("students", "classes", "enrollments", "attendance_records")

# The configured database name wins over whatever the script was written against.
_DB_DIRECTIVES = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$", re.IGNORECASE | re.MULTILINE)
_LINE_COMMENT = re.compile(r"^\s*--.*$", re.MULTILINE)


def split_statements(sql: str) -> Iterator[str]:
    """Yield the statements of a script; a ``;`` inside a quoted literal does not end one."""

    sql = _LINE_COMMENT.sub("", _DB_DIRECTIVES.sub("", sql))
    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def _open(db_config: Mapping[str, object], *, with_database: bool = True):
    target = DBConfig.from_dict(db_config)
    return mysql.connector.connect(charset="utf8mb4", **target.connect_kwargs(with_database=with_database))


def run_script(db_config: Mapping[str, object], path: PathLike) -> int:
    """Execute every statement of ``path`` in one transaction; returns how many ran."""

    statements = list(split_statements(Path(path).read_text(encoding="utf-8")))
    conn = _open(db_config)
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    except mysql.connector.Error:
        conn.rollback()
        logger.exception("Failed running %s", path)
        raise
    finally:
        conn.close()
    return len(statements)


def ensure_database_exists(db_config: Mapping[str, object]) -> None:
    name = DBConfig.from_dict(db_config).database
    conn = _open(db_config, with_database=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
    finally:
        conn.close()


def apply_schema(db_config: Mapping[str, object], *, schema_path: PathLike) -> None:
    ensure_database_exists(db_config)
    count = run_script(db_config, schema_path)
    logger.info("Applied schema %s (%d statements)", schema_path, count)

    missing = missing_tables(db_config)
    if missing:
        logger.warning("Schema applied but tables are still missing: %s", ", ".join(missing))


def apply_seed_sql(db_config: Mapping[str, object], *, seed_path: PathLike) -> None:
    count = run_script(db_config, seed_path)
    logger.info("Applied seed %s (%d statements)", seed_path, count)


def list_tables(db_config: Mapping[str, object]) -> list:
    conn = _open(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()


def missing_tables(db_config: Mapping[str, object], required: Sequence[str] = REQUIRED_TABLES) -> list:
    present = set(list_tables(db_config))
    return [t for t in required if t not in present]
