from __future__ import annotations

from .enums import InvalidStateReason


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain"
    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or out of range."""

    kind = "validation"


class NotFoundError(DomainError):
    """Raised when an id does not resolve to a stored entity."""

    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, ref: object = None):
        self.entity = entity
        self.ref = ref
        super().__init__(f"{entity} not found")


class ConflictError(DomainError):
    """Raised when a uniqueness constraint is violated."""

    kind = "conflict"
    status_code = 409


class InvalidStateError(DomainError):
    """Raised when an operation is not allowed in the current enrollment state."""

    kind = "invalid_state"

    def __init__(self, reason: InvalidStateReason, message: str):
        self.reason = reason
        super().__init__(message)
