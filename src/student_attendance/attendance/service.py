from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..classes.model import SchoolClass
from ..classes.repository import ClassRepository
from ..common.datetime_utils import DayLike, normalize_day, now_local, optional_day
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_enum, parse_positive_int
from ..core.constants import DEFAULT_MARKED_BY, EXPORT_ROW_LIMIT
from ..core.enums import AttendanceStatus, InvalidStateReason
from ..core.exceptions import ConflictError, DomainError, InvalidStateError, NotFoundError, ValidationError
from ..enrollment.service import EnrollmentRegistry
from ..students.repository import StudentRepository
from .model import (
    AttendanceFilters,
    AttendanceRecord,
    AttendanceReportRow,
    BulkEntry,
    BulkFailure,
    BulkResult,
    ClassDayAttendance,
    MarkOutcome,
    RosterEntry,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def build_filters(
    *,
    class_id=None,
    student_id=None,
    status=None,
    on_date=None,
    start=None,
    end=None,
) -> AttendanceFilters:
    """Turn raw query values into validated filters.

    ``on_date`` selects a single normalized day and wins over ``start``/``end``.
    """

    day = optional_day(on_date, "date")
    start_day = day or optional_day(start, "start_date")
    end_day = day or optional_day(end, "end_date")
    if start_day and end_day and start_day > end_day:
        raise ValidationError("start_date must not be after end_date")

    return AttendanceFilters(
        class_id=parse_positive_int(class_id, "class_id") if class_id not in (None, "") else None,
        student_id=parse_positive_int(student_id, "student_id") if student_id not in (None, "") else None,
        status=parse_enum(AttendanceStatus, status, "status") if status not in (None, "") else None,
        start=start_day,
        end=end_day,
    )


class AttendanceReconciler:
    """Marks attendance: one record per (student, class, day), created or updated in place.

    The lookup-then-write sequence is not atomic on its own. The store's unique
    key on (student, class, day) decides a race: the losing insert surfaces as
    ``ConflictError`` instead of a second row.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        classes: ClassRepository,
        registry: EnrollmentRegistry,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._students = students
        self._classes = classes
        self._registry = registry
        self._clock = clock

    def _require_class(self, class_ref) -> SchoolClass:
        class_id = parse_positive_int(class_ref, "class_id")
        cls = self._classes.get_by_id(class_id)
        if not cls:
            raise NotFoundError("Class", class_ref)
        return cls

    def mark_one(
        self,
        student_ref,
        class_ref,
        day: DayLike,
        status,
        *,
        notes: Optional[str] = None,
        marked_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MarkOutcome:
        status = parse_enum(AttendanceStatus, status, "status")
        attendance_date = normalize_day(day)
        cls = self._require_class(class_ref)
        return self._apply(
            cls,
            student_ref,
            attendance_date,
            status,
            notes=notes,
            marked_by=marked_by,
            now=now or self._clock(),
        )

    def _apply(
        self,
        cls: SchoolClass,
        student_ref,
        attendance_date: date,
        status: AttendanceStatus,
        *,
        notes,
        marked_by,
        now: datetime,
    ) -> MarkOutcome:
        student_id = parse_positive_int(student_ref, "student_id")
        notes = None if notes is None else (optional_text(notes, "notes") or "")
        marked_by = optional_text(marked_by, "marked_by")

        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student", student_ref)
        if not self._registry.is_enrolled(student.student_id, cls.class_id):
            raise InvalidStateError(InvalidStateReason.NOT_ENROLLED, "Student is not enrolled in this class")

        existing = self._attendance.get_for_key(
            student_id=student.student_id,
            class_id=cls.class_id,
            attendance_date=attendance_date,
        )

        if existing:
            # Omitted notes/marked_by keep their stored values; "" clears notes.
            ok = self._attendance.update(
                attendance_id=existing.attendance_id,
                status=status,
                notes=existing.notes if notes is None else (notes or None),
                marked_by=marked_by or existing.marked_by,
                time_marked=now,
            )
            updated = self._attendance.get_by_id(existing.attendance_id) if ok else None
            if not updated:
                raise ConflictError("Attendance record was removed while being updated")
            logger.info(
                "Updated attendance %s: student=%s class=%s date=%s %s -> %s",
                existing.attendance_id,
                student.student_number,
                cls.class_code,
                attendance_date,
                existing.status.value,
                status.value,
            )
            return MarkOutcome(record=updated, created=False)

        attendance_id = self._attendance.insert(
            student_id=student.student_id,
            class_id=cls.class_id,
            attendance_date=attendance_date,
            status=status,
            notes=notes or None,
            marked_by=marked_by or DEFAULT_MARKED_BY,
            time_marked=now,
        )
        created = self._attendance.get_by_id(attendance_id)
        if not created:
            raise ConflictError("Attendance record was removed right after it was created")
        logger.info(
            "Marked attendance %s: student=%s class=%s date=%s status=%s",
            attendance_id,
            student.student_number,
            cls.class_code,
            attendance_date,
            status.value,
        )
        return MarkOutcome(record=created, created=True)

    def mark_bulk(
        self,
        class_ref,
        day: DayLike,
        entries: Iterable[BulkEntry],
        *,
        marked_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BulkResult:
        """Apply ``mark_one`` per entry; one bad entry never aborts the rest.

        Students left out of ``entries`` are not touched.
        """

        attendance_date = normalize_day(day)
        cls = self._require_class(class_ref)
        now = now or self._clock()

        result = BulkResult()
        for entry in entries:
            try:
                status = parse_enum(AttendanceStatus, entry.status, "status")
                outcome = self._apply(
                    cls,
                    entry.student_ref,
                    attendance_date,
                    status,
                    notes=entry.notes,
                    marked_by=marked_by,
                    now=now,
                )
                result.results.append(outcome.record)
            except DomainError as e:
                logger.debug("Bulk entry rejected for student %r: %s", entry.student_ref, e)
                result.errors.append(BulkFailure(student=entry.student_ref, error=str(e), kind=e.kind))
            except Exception:
                logger.exception("Unexpected error marking student %r in class %s", entry.student_ref, cls.class_code)
                result.errors.append(
                    BulkFailure(
                        student=entry.student_ref,
                        error="Unexpected error while marking attendance",
                        kind="internal",
                    )
                )

        logger.info(
            "Bulk attendance class=%s date=%s: %d successful, %d errors",
            cls.class_code,
            attendance_date,
            len(result.results),
            len(result.errors),
        )
        return result

    def get_for_class_and_date(self, class_ref, day: DayLike) -> ClassDayAttendance:
        """Current roster left-joined with that day's records.

        Students without a record come back unmarked, not as absent.
        """

        attendance_date = normalize_day(day)
        cls = self._require_class(class_ref)

        roster = self._registry.roster(cls.class_id)
        by_student = {
            r.student_id: r
            for r in self._attendance.list_for_class_and_date(class_id=cls.class_id, attendance_date=attendance_date)
        }
        entries = [RosterEntry(student=s, record=by_student.get(s.student_id)) for s in roster]
        return ClassDayAttendance(school_class=cls, attendance_date=attendance_date, entries=entries)

    def list_records(self, filters: AttendanceFilters, *, page: PageRequest) -> Page[AttendanceReportRow]:
        rows, total = self._attendance.list_rows(filters, offset=page.offset, limit=page.limit)
        return Page(items=rows, total=total, request=page)

    def export_rows(self, filters: AttendanceFilters) -> Sequence[AttendanceReportRow]:
        rows, total = self._attendance.list_rows(filters, offset=0, limit=EXPORT_ROW_LIMIT)
        if total > EXPORT_ROW_LIMIT:
            logger.warning("Attendance export truncated to %d of %d rows", EXPORT_ROW_LIMIT, total)
        return rows

    def get(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record", attendance_id)
        return record

    def delete(self, attendance_id: int) -> None:
        record = self.get(attendance_id)
        if not self._attendance.delete(record.attendance_id):
            raise NotFoundError("Attendance record", attendance_id)
        logger.info("Deleted attendance %s", record.attendance_id)
