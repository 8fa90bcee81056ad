from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import parse_hhmm
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, parse_positive_int, require_non_empty
from ..core.constants import DEFAULT_MAX_STUDENTS
from ..core.enums import ClassStatus, Weekday
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..enrollment.service import EnrollmentRegistry
from ..students.model import Student
from .model import ClassSchedule, NewClass, SchoolClass
from .repository import ClassRepository

logger = logging.getLogger(__name__)

_REQUIRED = ("class_code", "class_name", "subject", "instructor", "schedule", "semester", "academic_year")
_TEXT_FIELDS = ("class_name", "subject", "instructor", "semester", "academic_year")


def _parse_schedule(value) -> ClassSchedule:
    if not isinstance(value, Mapping):
        raise ValidationError("schedule must be an object with day_of_week, start_time and end_time")

    days = value.get("day_of_week")
    if isinstance(days, str):
        days = [days]
    if not days:
        raise ValidationError("schedule.day_of_week must list at least one day")
    weekdays = [parse_enum(Weekday, d, "schedule.day_of_week") for d in days]

    start = parse_hhmm(value.get("start_time"), "schedule.start_time")
    end = parse_hhmm(value.get("end_time"), "schedule.end_time")
    if end <= start:
        raise ValidationError("schedule.end_time must be after start_time")

    return ClassSchedule.of(weekdays, start, end)


def _clean(payload: Mapping[str, object], *, partial: bool) -> dict:
    if not partial:
        missing = [f for f in _REQUIRED if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    if "students" in payload:
        raise ValidationError("students cannot be edited directly; use the enroll endpoints")

    out: dict = {}
    if "class_code" in payload:
        out["class_code"] = require_non_empty(payload["class_code"], "class_code").upper()
    for field in _TEXT_FIELDS:
        if field in payload:
            out[field] = require_non_empty(payload[field], field)
    if "schedule" in payload:
        out["schedule"] = _parse_schedule(payload["schedule"])
    if payload.get("max_students") is not None:
        out["max_students"] = parse_positive_int(payload["max_students"], "max_students")
    if payload.get("status") is not None:
        out["status"] = parse_enum(ClassStatus, payload["status"], "status")
    return out


class ClassService:
    """Use case: manage classes."""

    def __init__(self, classes: ClassRepository, registry: EnrollmentRegistry):
        self._classes = classes
        self._registry = registry

    def get(self, class_id: int) -> SchoolClass:
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError("Class", class_id)
        return cls

    def list(
        self,
        *,
        page: PageRequest,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Page[SchoolClass]:
        status_enum = parse_enum(ClassStatus, status, "status") if status else None
        items, total = self._classes.search(
            search=(search or "").strip() or None,
            status=status_enum,
            offset=page.offset,
            limit=page.limit,
        )
        return Page(items=items, total=total, request=page)

    def _check_unique(self, fields: dict, *, exclude_id: Optional[int] = None) -> None:
        if "class_code" in fields:
            other = self._classes.get_by_code(fields["class_code"])
            if other and other.class_id != exclude_id:
                raise ConflictError("class_code already exists")

    def create(self, payload: Mapping[str, object]) -> SchoolClass:
        fields = _clean(payload, partial=False)
        self._check_unique(fields)

        class_id = self._classes.create(
            NewClass(
                class_code=fields["class_code"],
                class_name=fields["class_name"],
                subject=fields["subject"],
                instructor=fields["instructor"],
                schedule=fields["schedule"],
                semester=fields["semester"],
                academic_year=fields["academic_year"],
                max_students=fields.get("max_students", DEFAULT_MAX_STUDENTS),
                status=fields.get("status", ClassStatus.ACTIVE),
            )
        )
        logger.info("Created class %s (id=%s)", fields["class_code"], class_id)
        return self.get(class_id)

    def update(self, class_id: int, payload: Mapping[str, object]) -> SchoolClass:
        current = self.get(class_id)
        fields = _clean(payload, partial=True)
        self._check_unique(fields, exclude_id=current.class_id)

        if "max_students" in fields:
            enrolled = self._registry.member_count(current.class_id)
            if fields["max_students"] < enrolled:
                raise ValidationError(f"max_students cannot be lower than the {enrolled} enrolled student(s)")

        if not self._classes.update(current.class_id, fields):
            raise NotFoundError("Class", class_id)
        logger.info("Updated class %s fields=%s", current.class_code, sorted(fields))
        return self.get(current.class_id)

    def delete(self, class_id: int) -> None:
        cls = self.get(class_id)
        if not self._classes.delete_by_id(cls.class_id):
            raise NotFoundError("Class", class_id)
        self._registry.release_class(cls.class_id)
        logger.info("Deleted class %s", cls.class_code)

    def students(self, class_id: int) -> Sequence[Student]:
        return self._registry.roster(class_id)
