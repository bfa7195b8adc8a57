"""Generic repository base.

GenericRepository[E, K] is the root data-access abstraction: typed CRUD,
batch CRUD, existence checks, optimistic-lock control and paginated search
for one entity type, built only on the StoreSession / QueryBuilder contracts
in .session.  Entity-specific repositories subclass it and add their own
query methods on top of new_query() and find_paginated().

Design notes:
  - The entity type is passed explicitly (constructor argument or class
    attribute); nothing is resolved by reflecting on generic parameters.
  - The repository holds no state besides the injected session, which it
    shares but does not own.  Transactions belong to the session owner.
  - Batch save / delete are applied element by element in iteration order;
    a failure on element k leaves 0..k-1 applied.  Atomicity is the
    enclosing transaction's job.
  - Nothing is retried or swallowed here.  find_one() and exists() are the
    only places where a missing key is a normal result.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import ClassVar, Generic, Iterable, Sequence, TypeVar

from dataaccess.domain.exceptions import EntityNotFoundError
from dataaccess.domain.models.criteria import (
    PaginatedResult,
    SearchCriteria,
    SortOrder,
    validate_criteria,
)
from dataaccess.domain.models.enums import EntityState

from .session import QueryBuilder, StoreSession

logger = logging.getLogger(__name__)

E = TypeVar("E")
K = TypeVar("K")


class GenericRepository(Generic[E, K]):
    """CRUD and paginated search for one entity type over a StoreSession.

    Entities expose their primary key as ``id``; ``None`` means new.
    """

    entity_type: ClassVar[type | None] = None

    def __init__(self, session: StoreSession, entity_type: type[E] | None = None) -> None:
        resolved = entity_type or type(self).entity_type
        if resolved is None:
            raise TypeError(
                f"{type(self).__name__} needs an entity_type argument or class attribute"
            )
        self._session = session
        self._entity_type: type[E] = resolved

    @property
    def session(self) -> StoreSession:
        return self._session

    @property
    def managed_type(self) -> type[E]:
        return self._entity_type

    @property
    def entity_name(self) -> str:
        return self._entity_type.__name__

    # -- identity helpers ------------------------------------------------------

    @staticmethod
    def is_new(entity: E) -> bool:
        """True if the entity has never been persisted (no primary key)."""
        return entity.id is None  # type: ignore[attr-defined]

    def get_state(self, entity: E) -> EntityState:
        """Infer NEW / MANAGED / DETACHED from the key and the session."""
        if self.is_new(entity):
            return EntityState.NEW
        if self._session.contains(entity):
            return EntityState.MANAGED
        return EntityState.DETACHED

    @staticmethod
    def same_identity(a: E, b: E) -> bool:
        """Two entities are the same iff their keys are equal and non-null."""
        a_id = a.id  # type: ignore[attr-defined]
        return a_id is not None and a_id == b.id  # type: ignore[attr-defined]

    def new_query(self) -> QueryBuilder[E]:
        """Return an empty query over the managed entity type."""
        return self._session.new_query_builder(self._entity_type)

    # -- save ------------------------------------------------------------------

    def save(self, entity: E) -> E:
        """Insert a new entity or merge one whose key already exists.

        A keyed entity whose row is missing raises EntityNotFoundError rather
        than being inserted, so a stale or forged key never creates a row.
        """
        if self.is_new(entity):
            self._session.insert(entity)
            logger.debug("Saved new %s with id %s.", self.entity_name, entity.id)  # type: ignore[attr-defined]
            return entity

        key = entity.id  # type: ignore[attr-defined]
        if self._session.find_by_key(self._entity_type, key) is None:
            raise EntityNotFoundError(entity_name=self.entity_name, key=key, operation="save")
        merged = self._session.merge(entity)
        logger.debug("Updated %s with id %s.", self.entity_name, key)
        return merged

    def save_all(self, entities: Iterable[E]) -> list[E]:
        """Save each entity in order; the first failure propagates."""
        return [self.save(entity) for entity in entities]

    def force_increment_version(self, entity: E) -> None:
        """Bump the optimistic-lock version without any field change.

        Invalidates concurrent readers of the same row: their next write
        fails with ConflictError.
        """
        self._session.lock_for_version_increment(entity)

    # -- lookup ----------------------------------------------------------------

    def find_one(self, id: K) -> E | None:
        """Return the entity with the given key, or None."""
        return self._session.find_by_key(self._entity_type, id)

    def find(self, id: K) -> E:
        """Return the entity with the given key or raise EntityNotFoundError."""
        entity = self.find_one(id)
        if entity is None:
            raise EntityNotFoundError(entity_name=self.entity_name, key=id)
        return entity

    def exists(self, id: K) -> bool:
        # Full lookup; the store gives us nothing cheaper.
        return self.find_one(id) is not None

    def find_all(self, ids: Iterable[K] | None = None) -> list[E]:
        """Return every entity, or only those whose key is in ``ids``.

        Result order is whatever the store returns, not the order of ``ids``.
        """
        if ids is None:
            result = self.new_query().execute()
            logger.debug("Query for all %s objects returned %d hit(s).", self.entity_name, len(result))
            return result

        keys = list(ids)
        if not keys:
            return []
        result = self.new_query().where_key_in(keys).execute()
        logger.debug(
            "Query for selection of %s objects returned %d hit(s).", self.entity_name, len(result)
        )
        return result

    # -- delete ----------------------------------------------------------------

    def delete_by_id(self, id: K) -> None:
        """Remove the row with the given key without loading it first."""
        reference = self._session.get_reference(self._entity_type, id)
        self._session.remove(reference)
        logger.debug("Deleted %s with id %s.", self.entity_name, id)

    def delete(self, entity: E) -> None:
        """Remove an entity, whether tracked by the session or detached."""
        if self._session.contains(entity):
            self._session.remove(entity)
            logger.debug("Deleted %s with id %s.", self.entity_name, entity.id)  # type: ignore[attr-defined]
        else:
            # Removing a detached instance directly would fail in the session.
            self.delete_by_id(entity.id)  # type: ignore[attr-defined]

    def delete_all(self, entities: Iterable[E]) -> None:
        """Delete each entity in order; the first failure propagates."""
        for entity in entities:
            self.delete(entity)

    # -- paginated search ------------------------------------------------------

    def find_paginated(
        self,
        criteria: SearchCriteria,
        query: QueryBuilder[E] | None = None,
        apply_sort_order: bool = True,
    ) -> PaginatedResult[E]:
        """Return one page of ``query`` as described by ``criteria``.

        ``query`` carries the caller's filter predicates (all entities when
        omitted).  Sort order, offset, limit and timeout come from criteria;
        pass ``apply_sort_order=False`` to order a complex query by hand.
        When ``criteria.total`` is set, a second count query over the same
        predicates, without paging or sorting, fills in ``total``.
        """
        validate_criteria(criteria, entity_name=self.entity_name, operation="find_paginated")
        if query is None:
            query = self.new_query()

        if apply_sort_order:
            self.apply_sort_order(criteria.sort, query)
        self.apply_pagination(criteria, query)
        self.apply_timeout(query, criteria.timeout)

        items = query.execute()
        total = query.execute_count() if criteria.total else None
        logger.debug(
            "Paginated query for %s returned %d hit(s) (offset=%d, limit=%s, total=%s).",
            self.entity_name,
            len(items),
            criteria.offset,
            criteria.limit,
            total,
        )
        return PaginatedResult(items=items, total=total)

    @staticmethod
    def apply_sort_order(sort: Sequence[SortOrder], query: QueryBuilder[E]) -> QueryBuilder[E]:
        """Append ORDER BY terms in the given sequence."""
        for order in sort:
            query.order_by(order.field, order.direction)
        return query

    @staticmethod
    def apply_pagination(criteria: SearchCriteria, query: QueryBuilder[E]) -> QueryBuilder[E]:
        if criteria.offset > 0:
            query.set_offset(criteria.offset)
        if criteria.limit is not None:
            query.set_limit(criteria.limit)
        return query

    @staticmethod
    def apply_timeout(query: QueryBuilder[E], timeout: timedelta | None) -> QueryBuilder[E]:
        if timeout is not None:
            query.set_timeout(timeout)
        return query
