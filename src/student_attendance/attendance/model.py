from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence

from ..classes.model import SchoolClass
from ..core.enums import AttendanceStatus
from ..students.model import Student


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one (student, class, day) attendance fact."""

    attendance_id: int
    student_id: int
    class_id: int
    attendance_date: date
    status: AttendanceStatus
    notes: Optional[str]
    marked_by: str
    time_marked: datetime


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for listing/export: the record plus names of who and where.

    Student and class columns are optional because attendance outlives a
    deleted student or class.
    """

    record: AttendanceRecord
    student_number: Optional[str] = None
    student_name: Optional[str] = None
    class_code: Optional[str] = None
    class_name: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFilters:
    class_id: Optional[int] = None
    student_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class MarkOutcome:
    record: AttendanceRecord
    created: bool


@dataclass(frozen=True)
class BulkEntry:
    """One unvalidated line of a bulk request; checked when it is applied."""

    student_ref: object
    status: object
    notes: object = None


@dataclass(frozen=True)
class BulkFailure:
    student: object
    error: str
    kind: str


@dataclass
class BulkResult:
    results: List[AttendanceRecord] = field(default_factory=list)
    errors: List[BulkFailure] = field(default_factory=list)


@dataclass(frozen=True)
class RosterEntry:
    student: Student
    record: Optional[AttendanceRecord]

    @property
    def marked(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class ClassDayAttendance:
    school_class: SchoolClass
    attendance_date: date
    entries: Sequence[RosterEntry]
