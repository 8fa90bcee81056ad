from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceReconciler
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import ClassService
from .common.datetime_utils import now_local
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollment.repository import EnrollmentRepository
from .enrollment.service import EnrollmentRegistry
from .reports.service import OverviewService, SummaryAggregator
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    students_repo: StudentRepository
    classes_repo: ClassRepository
    enrollments_repo: EnrollmentRepository
    attendance_repo: AttendanceRepository

    enrollment_registry: EnrollmentRegistry
    student_service: StudentService
    class_service: ClassService
    attendance_service: AttendanceReconciler
    summary_aggregator: SummaryAggregator
    overview_service: OverviewService

    clock: Callable[[], datetime] = now_local


def wire(
    *,
    students_repo: StudentRepository,
    classes_repo: ClassRepository,
    enrollments_repo: EnrollmentRepository,
    attendance_repo: AttendanceRepository,
    conn: Optional[DatabaseConnection] = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    """Build the services on top of any repository implementations."""

    registry = EnrollmentRegistry(students_repo, classes_repo, enrollments_repo)
    aggregator = SummaryAggregator(attendance_repo)

    return Container(
        conn=conn,
        students_repo=students_repo,
        classes_repo=classes_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        enrollment_registry=registry,
        student_service=StudentService(students_repo, registry, clock=clock),
        class_service=ClassService(classes_repo, registry),
        attendance_service=AttendanceReconciler(attendance_repo, students_repo, classes_repo, registry, clock=clock),
        summary_aggregator=aggregator,
        overview_service=OverviewService(students_repo, classes_repo, aggregator, clock=clock),
        clock=clock,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        students_repo=MySQLStudentRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        enrollments_repo=MySQLEnrollmentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        conn=conn,
    )
