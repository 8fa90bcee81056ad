from __future__ import annotations

from typing import Mapping, Optional, Sequence, Tuple

from mysql.connector import errors as mysql_errors

from ..core.enums import StudentStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_name, fetchall, fetchone, is_duplicate_key, like_pattern
from .model import NewStudent, Student
from .repository import StudentRepository

_COLUMNS = """
    student_id, student_number, first_name, last_name, email, phone,
    date_of_birth, enrollment_date, status, created_at, updated_at
"""

_UPDATABLE = {
    "student_number",
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "enrollment_date",
    "status",
}

_KEY_FIELDS = {"uq_students_number": "student_number", "uq_students_email": "email"}


def row_to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        student_number=r["student_number"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        phone=r.get("phone"),
        date_of_birth=r["date_of_birth"],
        enrollment_date=r["enrollment_date"],
        status=StudentStatus(r["status"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _conflict(exc: mysql_errors.IntegrityError) -> ConflictError:
    field = _KEY_FIELDS.get(duplicate_key_name(exc) or "", "student")
    return ConflictError(f"{field} already exists")


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_where(self, clause: str, value: object) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE {clause}", (value,))
            r = fetchone(cur)
            return row_to_student(r) if r else None

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._get_where("student_id=%s", int(student_id))

    def get_by_number(self, student_number: str) -> Optional[Student]:
        return self._get_where("student_number=%s", student_number)

    def get_by_email(self, email: str) -> Optional[Student]:
        return self._get_where("email=%s", email)

    def create(self, data: NewStudent) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO students(student_number, first_name, last_name, email, phone,
                                         date_of_birth, enrollment_date, status)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        data.student_number,
                        data.first_name,
                        data.last_name,
                        data.email,
                        data.phone,
                        data.date_of_birth,
                        data.enrollment_date,
                        data.status.value,
                    ),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise _conflict(e) from e
            raise

    def update(self, student_id: int, changes: Mapping[str, object]) -> bool:
        fields = [k for k in changes if k in _UPDATABLE]
        if not fields:
            return self.get_by_id(student_id) is not None

        assignments = ", ".join(f"{f}=%s" for f in fields)
        params = [getattr(changes[f], "value", changes[f]) for f in fields]
        params.append(int(student_id))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE students SET {assignments} WHERE student_id=%s", tuple(params))
                # rowcount is 0 when values are unchanged, so re-check existence.
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS found FROM students WHERE student_id=%s", (int(student_id),))
                return fetchone(cur) is not None
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise _conflict(e) from e
            raise

    def delete_by_id(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
            return cur.rowcount > 0

    def search(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[StudentStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[Student], int]:
        clauses: list[str] = []
        params: list[object] = []

        if search:
            pattern = like_pattern(search)
            clauses.append("(first_name LIKE %s OR last_name LIKE %s OR email LIKE %s OR student_number LIKE %s)")
            params.extend([pattern] * 4)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM students {where}", tuple(params))
            total = int(fetchone(cur)["total"])

            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM students
                {where}
                ORDER BY created_at DESC, student_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [row_to_student(r) for r in fetchall(cur)], total

    def count(self, *, status: Optional[StudentStatus] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute("SELECT COUNT(*) AS total FROM students")
            else:
                cur.execute("SELECT COUNT(*) AS total FROM students WHERE status=%s", (status.value,))
            return int(fetchone(cur)["total"])
