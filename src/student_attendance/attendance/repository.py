from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import AttendanceFilters, AttendanceRecord, AttendanceReportRow


class AttendanceRepository(Protocol):
    """Attendance store. (student_id, class_id, attendance_date) is unique.

    ``insert`` raises ``ConflictError`` when that key already exists; the
    reconciler relies on it to catch two writers racing on the same day.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_key(self, *, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(
        self,
        *,
        student_id: int,
        class_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        notes: Optional[str],
        marked_by: str,
        time_marked: datetime,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        notes: Optional[str],
        marked_by: str,
        time_marked: datetime,
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_class_and_date(self, *, class_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_rows(
        self,
        filters: AttendanceFilters,
        *,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[AttendanceReportRow], int]:
        raise NotImplementedError

    def count_by_status(
        self,
        *,
        class_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError
