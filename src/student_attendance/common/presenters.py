"""JSON shapes returned by the API (snake_case, ISO-8601 dates)."""
from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from ..attendance.model import (
    AttendanceRecord,
    AttendanceReportRow,
    BulkResult,
    ClassDayAttendance,
)
from ..classes.model import SchoolClass
from ..reports.service import Overview
from ..students.model import Student


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def class_ref_json(cls: SchoolClass) -> dict:
    return {"class_id": cls.class_id, "class_code": cls.class_code, "class_name": cls.class_name}


def student_ref_json(s: Student) -> dict:
    return {
        "student_id": s.student_id,
        "student_number": s.student_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "email": s.email,
        "status": s.status.value,
    }


def student_json(s: Student, classes: Optional[Iterable[SchoolClass]] = None) -> dict:
    out = {
        "student_id": s.student_id,
        "student_number": s.student_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "full_name": s.full_name,
        "email": s.email,
        "phone": s.phone,
        "date_of_birth": _iso(s.date_of_birth),
        "enrollment_date": _iso(s.enrollment_date),
        "status": s.status.value,
        "created_at": _iso(s.created_at),
        "updated_at": _iso(s.updated_at),
    }
    if classes is not None:
        out["classes"] = [class_ref_json(c) for c in classes]
    return out


def class_json(
    cls: SchoolClass,
    *,
    enrolled: Optional[int] = None,
    students: Optional[Iterable[Student]] = None,
) -> dict:
    out = {
        "class_id": cls.class_id,
        "class_code": cls.class_code,
        "class_name": cls.class_name,
        "subject": cls.subject,
        "instructor": cls.instructor,
        "schedule": {
            "day_of_week": [d.value for d in cls.schedule.days],
            "start_time": cls.schedule.start_time,
            "end_time": cls.schedule.end_time,
        },
        "semester": cls.semester,
        "academic_year": cls.academic_year,
        "max_students": cls.max_students,
        "status": cls.status.value,
        "created_at": _iso(cls.created_at),
        "updated_at": _iso(cls.updated_at),
    }
    if students is not None:
        students = list(students)
        out["students"] = [student_ref_json(s) for s in students]
        enrolled = len(students) if enrolled is None else enrolled
    if enrolled is not None:
        out["enrolled_count"] = enrolled
    return out


def attendance_json(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "student_id": r.student_id,
        "class_id": r.class_id,
        "date": _iso(r.attendance_date),
        "status": r.status.value,
        "notes": r.notes,
        "marked_by": r.marked_by,
        "time_marked": _iso(r.time_marked),
    }


def attendance_row_json(row: AttendanceReportRow) -> dict:
    out = attendance_json(row.record)
    out["student"] = {"student_number": row.student_number, "name": row.student_name}
    out["class"] = {"class_code": row.class_code, "class_name": row.class_name}
    return out


def class_day_json(day: ClassDayAttendance) -> dict:
    return {
        "class": {**class_ref_json(day.school_class), "instructor": day.school_class.instructor},
        "date": _iso(day.attendance_date),
        "students": [
            {
                **student_ref_json(e.student),
                "marked": e.marked,
                "attendance": attendance_json(e.record) if e.record else None,
            }
            for e in day.entries
        ],
    }


def bulk_json(result: BulkResult) -> dict:
    return {
        "results": [attendance_json(r) for r in result.results],
        "errors": [{"student": f.student, "error": f.error, "kind": f.kind} for f in result.errors],
    }


def overview_json(o: Overview) -> dict:
    return {
        "total_students": o.total_students,
        "total_classes": o.total_classes,
        "active_classes": o.active_classes,
        "date": _iso(o.day),
        "today": o.today.as_dict(),
        "attendance_rate": o.today.rate(),
    }
