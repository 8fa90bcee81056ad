from datetime import date, datetime

import pytest

from student_attendance.container import wire
from student_attendance.main import create_app

from tests.fakes import InMemoryAttendance, InMemoryClasses, InMemoryEnrollments, InMemoryStudents

MATH = {
    "class_code": "math101",
    "class_name": "Algebra I",
    "subject": "Mathematics",
    "instructor": "Dr. Nguyen",
    "schedule": {"day_of_week": ["Wednesday", "Monday"], "start_time": "08:00", "end_time": "09:30"},
    "semester": "Fall",
    "academic_year": "2026-2027",
    "max_students": 2,
}


def student_payload(n: int, **overrides) -> dict:
    data = {
        "student_number": f"S-{1000 + n}",
        "first_name": f"First{n}",
        "last_name": f"Last{n}",
        "email": f"Student{n}@School.Example",
        "date_of_birth": "2010-05-0%d" % (n % 9 + 1),
    }
    data.update(overrides)
    return data


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 8, 15, 0)


@pytest.fixture
def container(fixed_now):
    students = InMemoryStudents()
    classes = InMemoryClasses()
    return wire(
        students_repo=students,
        classes_repo=classes,
        enrollments_repo=InMemoryEnrollments(students, classes),
        attendance_repo=InMemoryAttendance(students, classes),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def school(container):
    """One class (capacity 2) with two enrolled students and one outsider."""

    cls = container.class_service.create(MATH)
    alice = container.student_service.create(student_payload(1, first_name="Alice", class_id=cls.class_id))
    bob = container.student_service.create(student_payload(2, first_name="Bob", class_id=cls.class_id))
    carol = container.student_service.create(student_payload(3, first_name="Carol"))
    return {"class": cls, "alice": alice, "bob": bob, "carol": carol, "day": date(2026, 3, 2)}


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()
