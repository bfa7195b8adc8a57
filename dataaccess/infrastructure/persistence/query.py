"""SQLAlchemy implementation of the QueryBuilder contract."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import Select, func, inspect, select, text
from sqlalchemy.orm import InstrumentedAttribute, Session

from dataaccess.domain.exceptions import InvalidArgumentError
from dataaccess.domain.models.enums import SortDirection

from .errors import translate_errors

logger = logging.getLogger(__name__)

E = TypeVar("E")

# How many SQLite VM instructions run between deadline checks.
_SQLITE_PROGRESS_STEPS = 1000


class SqlQueryBuilder(Generic[E]):
    """Accumulates predicates, ordering, paging and a timeout for one entity.

    Nothing touches the database until execute() or execute_count().  The
    count statement reuses the predicates only, so paging and sorting never
    change the total.
    """

    def __init__(self, session: Session, entity_type: type[E]) -> None:
        self._session = session
        self._entity_type = entity_type
        self._mapper = inspect(entity_type)
        self._predicates: list[Any] = []
        self._order: list[Any] = []
        self._limit: int | None = None
        self._offset: int = 0
        self._timeout: timedelta | None = None

    @property
    def entity_name(self) -> str:
        return self._entity_type.__name__

    # -- building --------------------------------------------------------------

    def where(self, *predicates: Any) -> SqlQueryBuilder[E]:
        self._predicates.extend(predicates)
        return self

    def where_key_in(self, ids: Iterable[Any]) -> SqlQueryBuilder[E]:
        pk_columns = self._mapper.primary_key
        if len(pk_columns) != 1:
            raise InvalidArgumentError(
                entity_name=self.entity_name,
                operation="where_key_in",
                detail="key selection needs a single-column primary key",
            )
        key_attr = getattr(self._entity_type, self._mapper.get_property_by_column(pk_columns[0]).key)
        self._predicates.append(key_attr.in_(list(ids)))
        return self

    def order_by(self, field: str, direction: SortDirection) -> SqlQueryBuilder[E]:
        column = self._resolve_field(field)
        self._order.append(column.desc() if direction == SortDirection.DESC else column.asc())
        return self

    def set_limit(self, limit: int) -> SqlQueryBuilder[E]:
        if limit < 1:
            raise InvalidArgumentError(
                entity_name=self.entity_name,
                operation="set_limit",
                detail=f"limit must be >= 1, got {limit}",
            )
        self._limit = limit
        return self

    def set_offset(self, offset: int) -> SqlQueryBuilder[E]:
        if offset < 0:
            raise InvalidArgumentError(
                entity_name=self.entity_name,
                operation="set_offset",
                detail=f"offset must be >= 0, got {offset}",
            )
        self._offset = offset
        return self

    def set_timeout(self, timeout: timedelta) -> SqlQueryBuilder[E]:
        if timeout <= timedelta(0):
            raise InvalidArgumentError(
                entity_name=self.entity_name,
                operation="set_timeout",
                detail=f"timeout must be positive, got {timeout}",
            )
        self._timeout = timeout
        return self

    def _resolve_field(self, field: str) -> InstrumentedAttribute:
        if field not in self._mapper.column_attrs:
            raise InvalidArgumentError(
                entity_name=self.entity_name,
                operation="order_by",
                detail=f"unknown sort field {field!r}",
            )
        return getattr(self._entity_type, field)

    # -- statements ------------------------------------------------------------

    def statement(self) -> Select:
        """The paged, ordered SELECT for the entity."""
        stmt = select(self._entity_type)
        if self._predicates:
            stmt = stmt.where(*self._predicates)
        if self._order:
            stmt = stmt.order_by(*self._order)
        if self._offset:
            stmt = stmt.offset(self._offset)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def count_statement(self) -> Select:
        """SELECT count(*) over the same predicates, without paging or ordering."""
        stmt = select(func.count()).select_from(self._entity_type)
        if self._predicates:
            stmt = stmt.where(*self._predicates)
        return stmt

    # -- execution -------------------------------------------------------------

    def execute(self) -> list[E]:
        with translate_errors(self.entity_name, "execute"), self._timeout_scope():
            return list(self._session.scalars(self.statement()).all())

    def execute_count(self) -> int:
        with translate_errors(self.entity_name, "execute_count"), self._timeout_scope():
            return int(self._session.scalar(self.count_statement()) or 0)

    @contextmanager
    def _timeout_scope(self) -> Iterator[None]:
        if self._timeout is None:
            yield
            return

        dialect = self._session.get_bind(mapper=self._mapper).dialect.name
        millis = max(1, int(self._timeout.total_seconds() * 1000))
        if dialect == "postgresql":
            self._session.execute(text(f"SET LOCAL statement_timeout = {millis}"))
            yield
            # Skipped on failure: the aborted transaction discards SET LOCAL anyway.
            self._session.execute(text("SET LOCAL statement_timeout TO DEFAULT"))
        elif dialect == "sqlite":
            raw = self._session.connection().connection.driver_connection
            deadline = time.monotonic() + self._timeout.total_seconds()
            raw.set_progress_handler(
                lambda: 1 if time.monotonic() > deadline else 0, _SQLITE_PROGRESS_STEPS
            )
            try:
                yield
            finally:
                raw.set_progress_handler(None, 0)
        else:
            logger.debug(
                "Query timeout of %dms for %s not enforced on dialect %s.",
                millis,
                self.entity_name,
                dialect,
            )
            yield
