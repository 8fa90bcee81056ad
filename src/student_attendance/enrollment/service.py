from __future__ import annotations

import logging
from typing import Sequence

from ..classes.model import SchoolClass
from ..classes.repository import ClassRepository
from ..core.enums import EnrollOutcome, InvalidStateReason
from ..core.exceptions import InvalidStateError, NotFoundError
from ..students.model import Student
from ..students.repository import StudentRepository
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)


class EnrollmentRegistry:
    """Owner of the student <-> class membership relation.

    Every membership change goes through this class; ``Student`` and
    ``SchoolClass`` never carry a writable member list of their own, so the two
    directions of the relation cannot drift apart.
    """

    def __init__(self, students: StudentRepository, classes: ClassRepository, enrollments: EnrollmentRepository):
        self._students = students
        self._classes = classes
        self._enrollments = enrollments

    def _require_class(self, class_id: int) -> SchoolClass:
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError("Class", class_id)
        return cls

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def enroll(self, student_id: int, class_id: int) -> None:
        cls = self._require_class(class_id)
        student = self._require_student(student_id)

        # Fast-fail for the common case; add_member re-checks under a lock.
        if self._enrollments.is_member(student_id=student.student_id, class_id=cls.class_id):
            raise InvalidStateError(InvalidStateReason.ALREADY_ENROLLED, "Student already enrolled in this class")
        if self._enrollments.count_members(cls.class_id) >= cls.max_students:
            raise InvalidStateError(InvalidStateReason.CAPACITY_EXCEEDED, "Class is at maximum capacity")

        outcome = self._enrollments.add_member(student_id=student.student_id, class_id=cls.class_id)
        if outcome == EnrollOutcome.ALREADY_ENROLLED:
            raise InvalidStateError(InvalidStateReason.ALREADY_ENROLLED, "Student already enrolled in this class")
        if outcome == EnrollOutcome.CLASS_FULL:
            raise InvalidStateError(InvalidStateReason.CAPACITY_EXCEEDED, "Class is at maximum capacity")
        if outcome == EnrollOutcome.CLASS_MISSING:
            raise NotFoundError("Class", class_id)

        logger.info("Enrolled student %s in class %s", student.student_number, cls.class_code)

    def unenroll(self, student_id: int, class_id: int) -> None:
        cls = self._require_class(class_id)
        student = self._require_student(student_id)

        if not self._enrollments.remove_member(student_id=student.student_id, class_id=cls.class_id):
            raise InvalidStateError(InvalidStateReason.NOT_ENROLLED, "Student is not enrolled in this class")

        logger.info("Unenrolled student %s from class %s", student.student_number, cls.class_code)

    def is_enrolled(self, student_id: int, class_id: int) -> bool:
        return self._enrollments.is_member(student_id=int(student_id), class_id=int(class_id))

    def roster(self, class_id: int) -> Sequence[Student]:
        """Students currently enrolled in the class, by first then last name."""
        self._require_class(class_id)
        return self._enrollments.list_students(int(class_id))

    def classes_of(self, student_id: int) -> Sequence[SchoolClass]:
        return self._enrollments.list_classes(int(student_id))

    def member_count(self, class_id: int) -> int:
        return self._enrollments.count_members(int(class_id))

    def release_student(self, student_id: int) -> int:
        """Drop every membership of a deleted student. Attendance history stays."""
        removed = self._enrollments.remove_all_for_student(int(student_id))
        logger.debug("Released student %s from %d class(es)", student_id, removed)
        return removed

    def release_class(self, class_id: int) -> int:
        """Drop every membership of a deleted class. Attendance history stays."""
        removed = self._enrollments.remove_all_for_class(int(class_id))
        logger.debug("Released class %s from %d student(s)", class_id, removed)
        return removed
