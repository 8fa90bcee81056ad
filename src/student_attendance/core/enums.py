from __future__ import annotations

from enum import Enum


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"


class ClassStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class AttendanceStatus(str, Enum):
    """Attendance status values stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class InvalidStateReason(str, Enum):
    NOT_ENROLLED = "not_enrolled"
    ALREADY_ENROLLED = "already_enrolled"
    CAPACITY_EXCEEDED = "capacity_exceeded"


class EnrollOutcome(str, Enum):
    """Result of the store-side enrollment transaction."""

    ENROLLED = "enrolled"
    ALREADY_ENROLLED = "already_enrolled"
    CLASS_FULL = "class_full"
    CLASS_MISSING = "class_missing"
