"""Domain exceptions for the data-access layer.

Store-driver exceptions are caught in the infrastructure layer and re-raised
as one of these so that callers never see raw database errors.  The
repository itself never catches them: every failure reaches the immediate
caller unmodified.
"""

from __future__ import annotations

from typing import Any


class PersistenceError(Exception):
    """Base exception for all data-access errors.

    Attributes:
        entity_name: The name of the entity type involved.
        operation: The operation that failed (e.g. ``"save"``, ``"find"``).
        detail: A sanitised description of what went wrong.
    """

    def __init__(
        self,
        *,
        entity_name: str,
        operation: str,
        detail: str,
        cause: Exception | None = None,
    ) -> None:
        self.entity_name = entity_name
        self.operation = operation
        self.detail = detail
        msg = f"[{entity_name}] {operation} failed: {detail}"
        super().__init__(msg)
        if cause is not None:
            self.__cause__ = cause


class EntityNotFoundError(PersistenceError):
    """Raised when an operation requires a record that does not exist."""

    def __init__(
        self,
        *,
        entity_name: str,
        key: Any,
        operation: str = "find",
        detail: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.key = key
        super().__init__(
            entity_name=entity_name,
            operation=operation,
            detail=detail or f"no {entity_name} with id {key!r}",
            cause=cause,
        )


class InvalidArgumentError(PersistenceError):
    """Raised for malformed search criteria or arguments, before any store call."""


class QueryTimeoutError(PersistenceError):
    """Raised when a query exceeds its time budget."""


class ConflictError(PersistenceError):
    """Raised on an optimistic-lock version mismatch."""


class DuplicateEntityError(PersistenceError):
    """Raised when an insert violates a uniqueness constraint."""


class QueryError(PersistenceError):
    """Raised for statement failures not covered by a more specific error."""
