from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence, Tuple

from mysql.connector import errors as mysql_errors

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceFilters, AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_COLUMNS = "ar.attendance_id, ar.student_id, ar.class_id, ar.attendance_date, ar.status, ar.notes, ar.marked_by, ar.time_marked"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        class_id=int(r["class_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
        marked_by=r["marked_by"],
        time_marked=r["time_marked"],
    )


def _where(filters: AttendanceFilters, *, class_id=None, start=None, end=None) -> Tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []

    class_id = filters.class_id if class_id is None else class_id
    start = filters.start if start is None else start
    end = filters.end if end is None else end

    if class_id is not None:
        clauses.append("ar.class_id=%s")
        params.append(int(class_id))
    if filters.student_id is not None:
        clauses.append("ar.student_id=%s")
        params.append(int(filters.student_id))
    if filters.status is not None:
        clauses.append("ar.status=%s")
        params.append(filters.status.value)
    if start is not None:
        clauses.append("ar.attendance_date >= %s")
        params.append(start)
    if end is not None:
        clauses.append("ar.attendance_date <= %s")
        params.append(end)

    return (f"WHERE {' AND '.join(clauses)}" if clauses else ""), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_key(self, *, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.student_id=%s AND ar.class_id=%s AND ar.attendance_date=%s
                """,
                (int(student_id), int(class_id), attendance_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def insert(
        self,
        *,
        student_id: int,
        class_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        notes: Optional[str],
        marked_by: str,
        time_marked: datetime,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(student_id, class_id, attendance_date, status, notes, marked_by, time_marked)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(student_id), int(class_id), attendance_date, status.value, notes, marked_by, time_marked),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("Attendance for this student, class and date was recorded concurrently") from e
            raise

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        notes: Optional[str],
        marked_by: str,
        time_marked: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, notes=%s, marked_by=%s, time_marked=%s
                WHERE attendance_id=%s
                """,
                (status.value, notes, marked_by, time_marked, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_for_class_and_date(self, *, class_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.class_id=%s AND ar.attendance_date=%s
                """,
                (int(class_id), attendance_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_rows(
        self,
        filters: AttendanceFilters,
        *,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[AttendanceReportRow], int]:
        where, params = _where(filters)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                SELECT
                    {_COLUMNS},
                    s.student_number, s.first_name, s.last_name,
                    c.class_code, c.class_name
                FROM attendance_records ar
                LEFT JOIN students s ON s.student_id = ar.student_id
                LEFT JOIN classes c ON c.class_id = ar.class_id
                {where}
                ORDER BY ar.attendance_date DESC, ar.created_at DESC, ar.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            rows = fetchall(cur)

        return [
            AttendanceReportRow(
                record=_row_to_record(r),
                student_number=r.get("student_number"),
                student_name=f"{r['first_name']} {r['last_name']}" if r.get("first_name") else None,
                class_code=r.get("class_code"),
                class_name=r.get("class_name"),
            )
            for r in rows
        ], total

    def count_by_status(
        self,
        *,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Mapping[AttendanceStatus, int]:
        where, params = _where(AttendanceFilters(), class_id=class_id, start=start, end=end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT ar.status, COUNT(*) AS total FROM attendance_records ar {where} GROUP BY ar.status",
                tuple(params),
            )
            return {AttendanceStatus(r["status"]): int(r["total"]) for r in fetchall(cur)}
