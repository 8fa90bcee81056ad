from datetime import date

import pytest

from student_attendance.attendance.model import BulkEntry
from student_attendance.attendance.service import build_filters
from student_attendance.common.pagination import PageRequest
from student_attendance.core.enums import AttendanceStatus
from student_attendance.core.exceptions import NotFoundError, ValidationError

from tests.conftest import MATH


def test_bulk_applies_good_entries_and_reports_bad_ones(container, school):
    alice, bob, carol = school["alice"], school["bob"], school["carol"]
    entries = [
        BulkEntry(student_ref=alice.student_id, status="present"),
        BulkEntry(student_ref=carol.student_id, status="present"),
        BulkEntry(student_ref=bob.student_id, status="nope"),
        BulkEntry(student_ref=4242, status="late"),
        BulkEntry(student_ref="abc", status="late"),
    ]

    result = container.attendance_service.mark_bulk(school["class"].class_id, "2026-03-02", entries, marked_by="t1")

    assert [r.student_id for r in result.results] == [alice.student_id]
    assert result.results[0].marked_by == "t1"
    assert [(f.student, f.kind) for f in result.errors] == [
        (carol.student_id, "invalid_state"),
        (bob.student_id, "validation"),
        (4242, "not_found"),
        ("abc", "validation"),
    ]
    assert len(container.attendance_repo.rows) == 1


def test_bulk_leaves_unlisted_students_untouched(container, school):
    svc = container.attendance_service
    cid = school["class"].class_id
    svc.mark_one(school["bob"].student_id, cid, "2026-03-02", "late", notes="bus")

    svc.mark_bulk(cid, "2026-03-02", [BulkEntry(student_ref=school["alice"].student_id, status="present")])

    bob_record = container.attendance_repo.get_for_key(
        student_id=school["bob"].student_id, class_id=cid, attendance_date=date(2026, 3, 2)
    )
    assert bob_record.status == AttendanceStatus.LATE
    assert bob_record.notes == "bus"


def test_bulk_upserts_existing_records(container, school):
    svc = container.attendance_service
    cid, sid = school["class"].class_id, school["alice"].student_id
    svc.mark_one(sid, cid, "2026-03-02", "absent")

    result = svc.mark_bulk(cid, "2026-03-02T15:00:00", [BulkEntry(student_ref=sid, status="present")])

    assert result.errors == []
    assert result.results[0].status == AttendanceStatus.PRESENT
    assert len(container.attendance_repo.rows) == 1


def test_bulk_unexpected_error_is_isolated(container, school, monkeypatch):
    repo = container.attendance_repo
    real_insert = repo.insert
    bob_id = school["bob"].student_id

    def flaky_insert(**kwargs):
        if kwargs["student_id"] == bob_id:
            raise RuntimeError("connection reset")
        return real_insert(**kwargs)

    monkeypatch.setattr(repo, "insert", flaky_insert)

    result = container.attendance_service.mark_bulk(
        school["class"].class_id,
        "2026-03-02",
        [
            BulkEntry(student_ref=bob_id, status="present"),
            BulkEntry(student_ref=school["alice"].student_id, status="present"),
        ],
    )

    assert len(result.results) == 1
    assert result.errors[0].kind == "internal"
    assert result.errors[0].student == bob_id


def test_bulk_with_unknown_class_fails_as_a_whole(container, school):
    with pytest.raises(NotFoundError):
        container.attendance_service.mark_bulk(999, "2026-03-02", [BulkEntry(student_ref=1, status="present")])


def test_bulk_with_bad_date_fails_as_a_whole(container, school):
    with pytest.raises(ValidationError):
        container.attendance_service.mark_bulk(school["class"].class_id, "yesterday", [])


def test_class_day_lists_every_member_marked_or_not(container, school):
    svc = container.attendance_service
    cid = school["class"].class_id
    svc.mark_one(school["bob"].student_id, cid, "2026-03-02", "late")
    svc.mark_one(school["bob"].student_id, cid, "2026-03-03", "absent")

    day = svc.get_for_class_and_date(cid, "2026-03-02T12:00:00")

    assert day.attendance_date == date(2026, 3, 2)
    assert [e.student.first_name for e in day.entries] == ["Alice", "Bob"]
    alice_entry, bob_entry = day.entries
    assert alice_entry.marked is False
    assert alice_entry.record is None
    assert bob_entry.marked is True
    assert bob_entry.record.status == AttendanceStatus.LATE


def test_class_day_drops_students_who_left(container, school):
    svc = container.attendance_service
    cid = school["class"].class_id
    svc.mark_one(school["alice"].student_id, cid, "2026-03-02", "present")
    container.enrollment_registry.unenroll(school["alice"].student_id, cid)

    day = svc.get_for_class_and_date(cid, "2026-03-02")

    assert [e.student.first_name for e in day.entries] == ["Bob"]


def test_class_day_for_unknown_class(container):
    with pytest.raises(NotFoundError):
        container.attendance_service.get_for_class_and_date(77, "2026-03-02")


def test_list_records_filters_and_paginates(container, school):
    svc = container.attendance_service
    cid = school["class"].class_id
    for day in ("2026-03-02", "2026-03-03", "2026-03-04"):
        svc.mark_one(school["alice"].student_id, cid, day, "present")
    svc.mark_one(school["bob"].student_id, cid, "2026-03-03", "absent")

    page = svc.list_records(build_filters(start="2026-03-03"), page=PageRequest(page=1, limit=2))

    assert page.total == 3
    assert page.total_pages == 2
    assert [r.record.attendance_date for r in page.items] == [date(2026, 3, 4), date(2026, 3, 3)]
    assert page.items[0].student_name == "Alice Last1"
    assert page.items[0].class_code == "MATH101"


def test_filters_single_day_and_range_validation():
    f = build_filters(on_date="2026-03-02T10:00:00", start="2020-01-01")
    assert f.start == f.end == date(2026, 3, 2)

    with pytest.raises(ValidationError):
        build_filters(start="2026-03-05", end="2026-03-01")
    with pytest.raises(ValidationError):
        build_filters(status="tardy")


def test_delete_record(container, school):
    svc = container.attendance_service
    out = svc.mark_one(school["alice"].student_id, school["class"].class_id, "2026-03-02", "present")

    svc.delete(out.record.attendance_id)

    with pytest.raises(NotFoundError):
        svc.get(out.record.attendance_id)


def test_three_enrolled_one_marked_gives_two_unmarked(container, school):
    big = container.class_service.create({**MATH, "class_code": "hist110", "max_students": 30})
    for key in ("alice", "bob", "carol"):
        container.enrollment_registry.enroll(school[key].student_id, big.class_id)
    container.attendance_service.mark_one(school["carol"].student_id, big.class_id, "2026-03-02", "excused")

    day = container.attendance_service.get_for_class_and_date(big.class_id, "2026-03-02")

    assert len(day.entries) == 3
    assert [e.student.first_name for e in day.entries if not e.marked] == ["Alice", "Bob"]
    assert [e.record.status for e in day.entries if e.marked] == [AttendanceStatus.EXCUSED]
