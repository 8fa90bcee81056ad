from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.constants import DEFAULT_MAX_STUDENTS
from ..core.enums import ClassStatus, Weekday

WEEK_ORDER = tuple(Weekday)


@dataclass(frozen=True)
class ClassSchedule:
    days: Tuple[Weekday, ...]
    start_time: str
    end_time: str

    @classmethod
    def of(cls, days, start_time: str, end_time: str) -> "ClassSchedule":
        ordered = tuple(d for d in WEEK_ORDER if d in set(days))
        return cls(days=ordered, start_time=start_time, end_time=end_time)


@dataclass(frozen=True)
class SchoolClass:
    """Domain entity: a class (course section) students enroll in."""

    class_id: int
    class_code: str
    class_name: str
    subject: str
    instructor: str
    schedule: ClassSchedule
    semester: str
    academic_year: str
    max_students: int = DEFAULT_MAX_STUDENTS
    status: ClassStatus = ClassStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewClass:
    class_code: str
    class_name: str
    subject: str
    instructor: str
    schedule: ClassSchedule
    semester: str
    academic_year: str
    max_students: int = DEFAULT_MAX_STUDENTS
    status: ClassStatus = ClassStatus.ACTIVE
