"""Base exceptions for the domain layer."""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain level exceptions."""


class NotFoundError(DomainError):
    """Raised when an entity cannot be located."""


class ValidationError(DomainError):
    """Raised when data fails domain validation rules."""


class AuthError(DomainError):
    """Raised on bad credentials or when an action needs a signed-in user."""


class RemoteError(DomainError):
    """Raised when the table store or the object store call fails."""


class DeserializationError(RemoteError):
    """Raised when a remote row does not match its typed model."""

    def __init__(self, table: str, row_id: object, detail: str) -> None:
        super().__init__(f"{table} row {row_id!r} is malformed: {detail}")
        self.table = table
        self.row_id = row_id


__all__ = [
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "AuthError",
    "RemoteError",
    "DeserializationError",
]
