from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence, Tuple

from ..core.enums import ClassStatus
from .model import NewClass, SchoolClass


class ClassRepository(Protocol):
    """``create``/``update`` raise ``ConflictError`` on a duplicate class_code."""

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def get_by_code(self, class_code: str) -> Optional[SchoolClass]:
        raise NotImplementedError

    def create(self, data: NewClass) -> int:
        raise NotImplementedError

    def update(self, class_id: int, changes: Mapping[str, object]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, class_id: int) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[ClassStatus] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[SchoolClass], int]:
        raise NotImplementedError

    def count(self, *, status: Optional[ClassStatus] = None) -> int:
        raise NotImplementedError
