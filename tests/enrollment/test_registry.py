import pytest

from student_attendance.core.enums import EnrollOutcome, InvalidStateReason
from student_attendance.core.exceptions import InvalidStateError, NotFoundError

from tests.conftest import student_payload


def test_membership_is_visible_from_both_sides(container, school):
    registry = container.enrollment_registry
    cid, aid = school["class"].class_id, school["alice"].student_id

    assert registry.is_enrolled(aid, cid)
    assert [c.class_id for c in registry.classes_of(aid)] == [cid]
    assert aid in [s.student_id for s in registry.roster(cid)]
    assert registry.member_count(cid) == 2


def test_enrolling_twice_is_rejected(container, school):
    with pytest.raises(InvalidStateError) as exc:
        container.enrollment_registry.enroll(school["alice"].student_id, school["class"].class_id)
    assert exc.value.reason == InvalidStateReason.ALREADY_ENROLLED


def test_full_class_rejects_more_students(container, school):
    with pytest.raises(InvalidStateError) as exc:
        container.enrollment_registry.enroll(school["carol"].student_id, school["class"].class_id)

    assert exc.value.reason == InvalidStateReason.CAPACITY_EXCEEDED
    assert container.enrollment_registry.member_count(school["class"].class_id) == 2
    assert container.enrollment_registry.classes_of(school["carol"].student_id) == []


def test_store_side_capacity_check_wins_a_race(container, school, monkeypatch):
    # The pre-check passes but the locked insert sees a full class.
    monkeypatch.setattr(container.enrollments_repo, "count_members", lambda class_id: 0)
    monkeypatch.setattr(container.enrollments_repo, "add_member", lambda **kw: EnrollOutcome.CLASS_FULL)

    with pytest.raises(InvalidStateError) as exc:
        container.enrollment_registry.enroll(school["carol"].student_id, school["class"].class_id)
    assert exc.value.reason == InvalidStateReason.CAPACITY_EXCEEDED


def test_unenroll_frees_a_seat(container, school):
    registry = container.enrollment_registry
    cid = school["class"].class_id

    registry.unenroll(school["alice"].student_id, cid)
    registry.enroll(school["carol"].student_id, cid)

    assert not registry.is_enrolled(school["alice"].student_id, cid)
    assert registry.classes_of(school["alice"].student_id) == []
    assert [s.first_name for s in registry.roster(cid)] == ["Bob", "Carol"]


def test_unenroll_of_non_member(container, school):
    with pytest.raises(InvalidStateError) as exc:
        container.enrollment_registry.unenroll(school["carol"].student_id, school["class"].class_id)
    assert exc.value.reason == InvalidStateReason.NOT_ENROLLED


def test_unknown_ids_are_not_found(container, school):
    registry = container.enrollment_registry
    with pytest.raises(NotFoundError):
        registry.enroll(school["carol"].student_id, 404)
    with pytest.raises(NotFoundError):
        registry.enroll(404, school["class"].class_id)
    with pytest.raises(NotFoundError):
        registry.roster(404)


def test_deleting_a_student_leaves_every_roster(container, school):
    other = container.class_service.create(
        {
            "class_code": "phy201",
            "class_name": "Physics",
            "subject": "Science",
            "instructor": "Ms. Tran",
            "schedule": {"day_of_week": "Friday", "start_time": "13:00", "end_time": "14:00"},
            "semester": "Fall",
            "academic_year": "2026-2027",
        }
    )
    aid = school["alice"].student_id
    container.enrollment_registry.enroll(aid, other.class_id)
    container.attendance_service.mark_one(aid, other.class_id, "2026-03-06", "present")

    container.student_service.delete(aid)

    assert [s.first_name for s in container.enrollment_registry.roster(school["class"].class_id)] == ["Bob"]
    assert container.enrollment_registry.roster(other.class_id) == []
    # history survives the student
    assert len(container.attendance_repo.rows) == 1


def test_deleting_a_class_clears_memberships(container, school):
    cid = school["class"].class_id
    container.attendance_service.mark_one(school["bob"].student_id, cid, "2026-03-02", "present")

    container.class_service.delete(cid)

    assert container.enrollment_registry.classes_of(school["alice"].student_id) == []
    assert container.enrollment_registry.classes_of(school["bob"].student_id) == []
    assert len(container.attendance_repo.rows) == 1


def test_new_student_with_full_class_is_not_created(container, school):
    with pytest.raises(InvalidStateError):
        container.student_service.create(student_payload(9, class_id=school["class"].class_id))

    assert container.students_repo.get_by_number("S-1009") is None
