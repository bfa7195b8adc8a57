"""Store-session and query-builder contracts consumed by GenericRepository.

Both are external collaborators: the repository depends only on these
protocols.  dataaccess.infrastructure.persistence provides the SQLAlchemy
implementation; tests substitute mocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterable, Protocol, TypeVar, runtime_checkable

from dataaccess.domain.models.enums import SortDirection

E = TypeVar("E")


@dataclass(frozen=True)
class EntityReference:
    """A lazy handle on a stored row, known only by type and key.

    Returned by StoreSession.get_reference when the row has not been loaded,
    so that deleting by key never needs a SELECT first.
    """

    entity_type: type
    key: Any


@runtime_checkable
class QueryBuilder(Protocol[E]):
    """Structured query over one entity type.

    Builder methods return the builder itself so calls can be chained.
    execute_count() honours the where-predicates only: ordering, offset,
    and limit never affect the count.
    """

    def where(self, *predicates: Any) -> QueryBuilder[E]: ...

    def where_key_in(self, ids: Iterable[Any]) -> QueryBuilder[E]: ...

    def order_by(self, field: str, direction: SortDirection) -> QueryBuilder[E]: ...

    def set_limit(self, limit: int) -> QueryBuilder[E]: ...

    def set_offset(self, offset: int) -> QueryBuilder[E]: ...

    def set_timeout(self, timeout: timedelta) -> QueryBuilder[E]: ...

    def execute(self) -> list[E]: ...

    def execute_count(self) -> int: ...


@runtime_checkable
class StoreSession(Protocol):
    """Persistence session: the unit of concurrency isolation.

    One session per request / transaction; never shared between concurrent
    logical operations.  Transaction boundaries belong to whoever owns it.
    """

    def find_by_key(self, entity_type: type[E], key: Any) -> E | None: ...

    def insert(self, entity: Any) -> None: ...

    def merge(self, entity: E) -> E: ...

    def remove(self, entity: Any) -> None: ...

    def get_reference(self, entity_type: type[E], key: Any) -> E | EntityReference: ...

    def contains(self, entity: Any) -> bool: ...

    def lock_for_version_increment(self, entity: Any) -> None: ...

    def new_query_builder(self, entity_type: type[E]) -> QueryBuilder[E]: ...
