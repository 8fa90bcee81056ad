from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence, Tuple

from ..core.enums import StudentStatus
from .model import NewStudent, Student


class StudentRepository(Protocol):
    """Repository interface for students.

    Note (DIP): services depend on this interface, not on a concrete database.
    ``create`` and ``update`` raise ``ConflictError`` when a unique key
    (student_number, email) is already taken.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_number(self, student_number: str) -> Optional[Student]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Student]:
        raise NotImplementedError

    def create(self, data: NewStudent) -> int:
        raise NotImplementedError

    def update(self, student_id: int, changes: Mapping[str, object]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, student_id: int) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[StudentStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[Student], int]:
        raise NotImplementedError

    def count(self, *, status: Optional[StudentStatus] = None) -> int:
        raise NotImplementedError
