from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Mapping, Optional

from ..attendance.repository import AttendanceRepository
from ..classes.repository import ClassRepository
from ..common.datetime_utils import DayLike, normalize_day, now_local, optional_day
from ..common.validators import parse_positive_int
from ..core.enums import AttendanceStatus, ClassStatus
from ..core.exceptions import ValidationError
from ..students.repository import StudentRepository


@dataclass(frozen=True)
class AttendanceSummary:
    counts: Mapping[AttendanceStatus, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def count(self, status: AttendanceStatus) -> int:
        return int(self.counts.get(status, 0))

    def rate(self, status: AttendanceStatus = AttendanceStatus.PRESENT) -> float:
        """Share of ``status`` in percent, one decimal; 0.0 for an empty set."""
        if not self.total:
            return 0.0
        return round(self.count(status) * 100.0 / self.total, 1)

    def as_dict(self) -> dict:
        out = {s.value: self.count(s) for s in AttendanceStatus}
        out["total"] = self.total
        return out


@dataclass(frozen=True)
class Overview:
    total_students: int
    total_classes: int
    active_classes: int
    day: date
    today: AttendanceSummary


class SummaryAggregator:
    """Folds attendance records into per-status counts. Reads only, never cached."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def summarize(self, *, class_id=None, start=None, end=None) -> AttendanceSummary:
        class_id = parse_positive_int(class_id, "class_id") if class_id not in (None, "") else None
        start_day = optional_day(start, "start_date")
        end_day = optional_day(end, "end_date")
        if start_day and end_day and start_day > end_day:
            raise ValidationError("start_date must not be after end_date")

        raw = self._attendance.count_by_status(class_id=class_id, start=start_day, end=end_day)
        counts = {s: int(raw.get(s, 0)) for s in AttendanceStatus}
        return AttendanceSummary(counts=counts)


class OverviewService:
    """Dashboard numbers: headcounts plus today's attendance."""

    def __init__(
        self,
        students: StudentRepository,
        classes: ClassRepository,
        aggregator: SummaryAggregator,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._students = students
        self._classes = classes
        self._aggregator = aggregator
        self._clock = clock

    def overview(self, day: Optional[DayLike] = None) -> Overview:
        day = normalize_day(day) if day else self._clock().date()
        return Overview(
            total_students=self._students.count(),
            total_classes=self._classes.count(),
            active_classes=self._classes.count(status=ClassStatus.ACTIVE),
            day=day,
            today=self._aggregator.summarize(start=day, end=day),
        )
