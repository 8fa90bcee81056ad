from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Domain entity: a student.

    Note: plain data object, no DB access. Class membership is not stored here;
    it is read through the enrollment registry.
    """

    student_id: int
    student_number: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    date_of_birth: date
    enrollment_date: datetime
    status: StudentStatus = StudentStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class NewStudent:
    student_number: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    date_of_birth: date
    enrollment_date: datetime
    status: StudentStatus = StudentStatus.ACTIVE
