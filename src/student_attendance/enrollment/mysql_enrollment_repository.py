from __future__ import annotations

from typing import Sequence

from mysql.connector import errors as mysql_errors

from ..classes.model import SchoolClass
from ..classes.mysql_class_repository import row_to_class
from ..core.enums import EnrollOutcome
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..students.model import Student
from ..students.mysql_student_repository import row_to_student
from .repository import EnrollmentRepository


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_member(self, *, student_id: int, class_id: int) -> EnrollOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the class serializes concurrent enrollments into it.
            cur.execute("SELECT max_students FROM classes WHERE class_id=%s FOR UPDATE", (int(class_id),))
            cls = fetchone(cur)
            if not cls:
                return EnrollOutcome.CLASS_MISSING

            cur.execute(
                "SELECT 1 AS found FROM enrollments WHERE student_id=%s AND class_id=%s",
                (int(student_id), int(class_id)),
            )
            if fetchone(cur):
                return EnrollOutcome.ALREADY_ENROLLED

            cur.execute("SELECT COUNT(*) AS total FROM enrollments WHERE class_id=%s", (int(class_id),))
            if int(fetchone(cur)["total"]) >= int(cls["max_students"]):
                return EnrollOutcome.CLASS_FULL

            try:
                cur.execute(
                    "INSERT INTO enrollments(student_id, class_id) VALUES(%s,%s)",
                    (int(student_id), int(class_id)),
                )
            except mysql_errors.IntegrityError as e:
                if is_duplicate_key(e):
                    return EnrollOutcome.ALREADY_ENROLLED
                raise
            return EnrollOutcome.ENROLLED

    def remove_member(self, *, student_id: int, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM enrollments WHERE student_id=%s AND class_id=%s",
                (int(student_id), int(class_id)),
            )
            return cur.rowcount > 0

    def remove_all_for_student(self, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enrollments WHERE student_id=%s", (int(student_id),))
            return int(cur.rowcount)

    def remove_all_for_class(self, class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enrollments WHERE class_id=%s", (int(class_id),))
            return int(cur.rowcount)

    def is_member(self, *, student_id: int, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM enrollments WHERE student_id=%s AND class_id=%s",
                (int(student_id), int(class_id)),
            )
            return fetchone(cur) is not None

    def count_members(self, class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM enrollments WHERE class_id=%s", (int(class_id),))
            return int(fetchone(cur)["total"])

    def list_students(self, class_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.student_id, s.student_number, s.first_name, s.last_name, s.email, s.phone,
                       s.date_of_birth, s.enrollment_date, s.status, s.created_at, s.updated_at
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                WHERE e.class_id=%s
                ORDER BY s.first_name ASC, s.last_name ASC, s.student_id ASC
                """,
                (int(class_id),),
            )
            return [row_to_student(r) for r in fetchall(cur)]

    def list_classes(self, student_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.class_code, c.class_name, c.subject, c.instructor,
                       c.schedule_days, c.start_time, c.end_time, c.semester, c.academic_year,
                       c.max_students, c.status, c.created_at, c.updated_at
                FROM enrollments e
                JOIN classes c ON c.class_id = e.class_id
                WHERE e.student_id=%s
                ORDER BY c.class_code ASC
                """,
                (int(student_id),),
            )
            return [row_to_class(r) for r in fetchall(cur)]
