import pytest

from student_attendance.core.enums import Weekday
from student_attendance.core.exceptions import ConflictError, ValidationError

from tests.conftest import MATH


def test_create_orders_schedule_and_uppercases_code(container):
    cls = container.class_service.create(MATH)

    assert cls.class_code == "MATH101"
    assert cls.schedule.days == (Weekday.MONDAY, Weekday.WEDNESDAY)
    assert cls.schedule.start_time == "08:00"
    assert cls.max_students == 2


def test_duplicate_code_conflicts(container):
    container.class_service.create(MATH)
    with pytest.raises(ConflictError):
        container.class_service.create({**MATH, "class_code": "Math101"})


@pytest.mark.parametrize(
    "schedule",
    [
        {"day_of_week": [], "start_time": "08:00", "end_time": "09:00"},
        {"day_of_week": ["Funday"], "start_time": "08:00", "end_time": "09:00"},
        {"day_of_week": ["Monday"], "start_time": "9am", "end_time": "10:00"},
        {"day_of_week": ["Monday"], "start_time": "10:00", "end_time": "10:00"},
        "Monday 8-9",
    ],
)
def test_bad_schedule_is_rejected(container, schedule):
    with pytest.raises(ValidationError):
        container.class_service.create({**MATH, "schedule": schedule})


@pytest.mark.parametrize("max_students", [0, -3, "many", True])
def test_bad_capacity_is_rejected(container, max_students):
    with pytest.raises(ValidationError):
        container.class_service.create({**MATH, "max_students": max_students})


def test_capacity_cannot_drop_below_enrollment(container, school):
    svc = container.class_service
    cid = school["class"].class_id

    with pytest.raises(ValidationError):
        svc.update(cid, {"max_students": 1})

    assert svc.update(cid, {"max_students": 3}).max_students == 3
    container.enrollment_registry.enroll(school["carol"].student_id, cid)
    assert len(svc.students(cid)) == 3


def test_students_cannot_be_edited_through_the_class(container, school):
    with pytest.raises(ValidationError):
        container.class_service.update(school["class"].class_id, {"students": []})
