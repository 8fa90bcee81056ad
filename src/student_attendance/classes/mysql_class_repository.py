from __future__ import annotations

from typing import Mapping, Optional, Sequence, Tuple

from mysql.connector import errors as mysql_errors

from ..core.enums import ClassStatus, Weekday
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    is_duplicate_key,
    like_pattern,
    mysql_time_to_hhmm,
    split_mysql_set,
)
from .model import ClassSchedule, NewClass, SchoolClass
from .repository import ClassRepository

_COLUMNS = """
    class_id, class_code, class_name, subject, instructor,
    schedule_days, start_time, end_time, semester, academic_year,
    max_students, status, created_at, updated_at
"""

_UPDATABLE = {
    "class_code",
    "class_name",
    "subject",
    "instructor",
    "semester",
    "academic_year",
    "max_students",
    "status",
}


def row_to_class(r: dict) -> SchoolClass:
    return SchoolClass(
        class_id=int(r["class_id"]),
        class_code=r["class_code"],
        class_name=r["class_name"],
        subject=r["subject"],
        instructor=r["instructor"],
        schedule=ClassSchedule.of(
            [Weekday(d) for d in split_mysql_set(r["schedule_days"])],
            mysql_time_to_hhmm(r["start_time"]),
            mysql_time_to_hhmm(r["end_time"]),
        ),
        semester=r["semester"],
        academic_year=r["academic_year"],
        max_students=int(r["max_students"]),
        status=ClassStatus(r["status"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _schedule_params(schedule: ClassSchedule) -> tuple:
    return ",".join(d.value for d in schedule.days), f"{schedule.start_time}:00", f"{schedule.end_time}:00"


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_where(self, clause: str, value: object) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE {clause}", (value,))
            r = fetchone(cur)
            return row_to_class(r) if r else None

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        return self._get_where("class_id=%s", int(class_id))

    def get_by_code(self, class_code: str) -> Optional[SchoolClass]:
        return self._get_where("class_code=%s", class_code)

    def create(self, data: NewClass) -> int:
        days, start, end = _schedule_params(data.schedule)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO classes(class_code, class_name, subject, instructor,
                                        schedule_days, start_time, end_time,
                                        semester, academic_year, max_students, status)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        data.class_code,
                        data.class_name,
                        data.subject,
                        data.instructor,
                        days,
                        start,
                        end,
                        data.semester,
                        data.academic_year,
                        int(data.max_students),
                        data.status.value,
                    ),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("class_code already exists") from e
            raise

    def update(self, class_id: int, changes: Mapping[str, object]) -> bool:
        assignments: list[str] = []
        params: list[object] = []
        for field in (f for f in changes if f in _UPDATABLE):
            assignments.append(f"{field}=%s")
            params.append(getattr(changes[field], "value", changes[field]))

        schedule = changes.get("schedule")
        if isinstance(schedule, ClassSchedule):
            assignments.extend(["schedule_days=%s", "start_time=%s", "end_time=%s"])
            params.extend(_schedule_params(schedule))

        if not assignments:
            return self.get_by_id(class_id) is not None

        params.append(int(class_id))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE classes SET {', '.join(assignments)} WHERE class_id=%s", tuple(params))
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS found FROM classes WHERE class_id=%s", (int(class_id),))
                return fetchone(cur) is not None
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("class_code already exists") from e
            raise

    def delete_by_id(self, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM classes WHERE class_id=%s", (int(class_id),))
            return cur.rowcount > 0

    def search(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[ClassStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[SchoolClass], int]:
        clauses: list[str] = []
        params: list[object] = []

        if search:
            pattern = like_pattern(search)
            clauses.append("(class_name LIKE %s OR class_code LIKE %s OR subject LIKE %s OR instructor LIKE %s)")
            params.extend([pattern] * 4)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM classes {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM classes
                {where}
                ORDER BY created_at DESC, class_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [row_to_class(r) for r in fetchall(cur)], total

    def count(self, *, status: Optional[ClassStatus] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute("SELECT COUNT(*) AS total FROM classes")
            else:
                cur.execute("SELECT COUNT(*) AS total FROM classes WHERE status=%s", (status.value,))
            return int(fetchone(cur)["total"])
