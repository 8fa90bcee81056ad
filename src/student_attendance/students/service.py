from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional

from ..common.datetime_utils import normalize_day, now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_enum, parse_positive_int, require_email, require_non_empty
from ..core.enums import StudentStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..enrollment.service import EnrollmentRegistry
from .model import NewStudent, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)

_REQUIRED = ("student_number", "first_name", "last_name", "email", "date_of_birth")


def _clean(payload: Mapping[str, object], *, partial: bool) -> dict:
    """Validate student fields; with ``partial`` only the given keys are checked."""

    if not partial:
        missing = [f for f in _REQUIRED if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    if "classes" in payload:
        raise ValidationError("classes cannot be edited directly; use the enroll endpoints")

    out: dict = {}
    for field in ("student_number", "first_name", "last_name"):
        if field in payload:
            out[field] = require_non_empty(payload[field], field)
    if "email" in payload:
        out["email"] = require_email(payload["email"])
    if "phone" in payload:
        out["phone"] = optional_text(payload["phone"], "phone")
    if "date_of_birth" in payload:
        out["date_of_birth"] = normalize_day(payload["date_of_birth"], "date_of_birth")
    if "status" in payload and payload["status"] is not None:
        out["status"] = parse_enum(StudentStatus, payload["status"], "status")
    if payload.get("enrollment_date"):
        value = payload["enrollment_date"]
        if isinstance(value, datetime):
            out["enrollment_date"] = value
        else:
            day = normalize_day(value, "enrollment_date")
            out["enrollment_date"] = datetime(day.year, day.month, day.day)
    return out


class StudentService:
    """Use case: manage students."""

    def __init__(
        self,
        students: StudentRepository,
        registry: EnrollmentRegistry,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._students = students
        self._registry = registry
        self._clock = clock

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def list(
        self,
        *,
        page: PageRequest,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[Student]:
        status_enum = parse_enum(StudentStatus, status, "status") if status else None
        items, total = self._students.search(
            search=(search or "").strip() or None,
            status=status_enum,
            offset=page.offset,
            limit=page.limit,
        )
        return Page(items=items, total=total, request=page)

    def _check_unique(self, fields: dict, *, exclude_id: Optional[int] = None) -> None:
        if "student_number" in fields:
            other = self._students.get_by_number(fields["student_number"])
            if other and other.student_id != exclude_id:
                raise ConflictError("student_number already exists")
        if "email" in fields:
            other = self._students.get_by_email(fields["email"])
            if other and other.student_id != exclude_id:
                raise ConflictError("email already exists")

    def create(self, payload: Mapping[str, object]) -> Student:
        fields = _clean(payload, partial=False)
        class_id = payload.get("class_id")
        if class_id not in (None, ""):
            class_id = parse_positive_int(class_id, "class_id")
        else:
            class_id = None

        self._check_unique(fields)

        student_id = self._students.create(
            NewStudent(
                student_number=fields["student_number"],
                first_name=fields["first_name"],
                last_name=fields["last_name"],
                email=fields["email"],
                phone=fields.get("phone"),
                date_of_birth=fields["date_of_birth"],
                enrollment_date=fields.get("enrollment_date") or self._clock(),
                status=fields.get("status", StudentStatus.ACTIVE),
            )
        )
        logger.info("Created student %s (id=%s)", fields["student_number"], student_id)

        if class_id is not None:
            try:
                self._registry.enroll(student_id, class_id)
            except Exception:
                # A failed enrollment leaves no student behind.
                logger.info("Enrollment of new student %s failed; removing it", fields["student_number"])
                self._students.delete_by_id(student_id)
                raise

        return self.get(student_id)

    def update(self, student_id: int, payload: Mapping[str, object]) -> Student:
        current = self.get(student_id)
        fields = _clean(payload, partial=True)
        self._check_unique(fields, exclude_id=current.student_id)

        if not self._students.update(current.student_id, fields):
            raise NotFoundError("Student", student_id)
        logger.info("Updated student %s fields=%s", current.student_number, sorted(fields))
        return self.get(current.student_id)

    def delete(self, student_id: int) -> None:
        student = self.get(student_id)
        if not self._students.delete_by_id(student.student_id):
            raise NotFoundError("Student", student_id)
        self._registry.release_student(student.student_id)
        logger.info("Deleted student %s", student.student_number)
