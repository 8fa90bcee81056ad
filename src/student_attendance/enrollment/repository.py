from __future__ import annotations

from typing import Protocol, Sequence

from ..classes.model import SchoolClass
from ..core.enums import EnrollOutcome
from ..students.model import Student


class EnrollmentRepository(Protocol):
    """Student <-> class membership, stored once and read from both sides.

    ``add_member`` must perform the duplicate and capacity checks and the insert
    as one unit in the store, so two concurrent calls cannot both take the last
    seat.
    """

    def add_member(self, *, student_id: int, class_id: int) -> EnrollOutcome:
        raise NotImplementedError

    def remove_member(self, *, student_id: int, class_id: int) -> bool:
        raise NotImplementedError

    def remove_all_for_student(self, student_id: int) -> int:
        raise NotImplementedError

    def remove_all_for_class(self, class_id: int) -> int:
        raise NotImplementedError

    def is_member(self, *, student_id: int, class_id: int) -> bool:
        raise NotImplementedError

    def count_members(self, class_id: int) -> int:
        raise NotImplementedError

    def list_students(self, class_id: int) -> Sequence[Student]:
        raise NotImplementedError

    def list_classes(self, student_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError
