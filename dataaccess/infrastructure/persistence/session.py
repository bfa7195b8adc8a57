"""SQLAlchemy implementation of the StoreSession contract."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import delete, inspect, update
from sqlalchemy.orm import Mapper, Session
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.orm.util import identity_key

from dataaccess.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InvalidArgumentError,
    QueryError,
)
from dataaccess.domain.repositories.session import EntityReference

from .errors import translate_errors
from .query import SqlQueryBuilder

E = TypeVar("E")


def _key_attribute(mapper: Mapper) -> Any:
    """Return the ORM attribute of a single-column primary key."""
    pk_columns = mapper.primary_key
    if len(pk_columns) != 1:
        raise QueryError(
            entity_name=mapper.class_.__name__,
            operation="delete",
            detail="reference deletion needs a single-column primary key",
        )
    return getattr(mapper.class_, mapper.get_property_by_column(pk_columns[0]).key)


class SqlStoreSession:
    """Adapts a sqlalchemy.orm.Session to the StoreSession contract.

    The wrapped session is shared, not owned: this class never commits,
    rolls back or closes it.  Writes are flushed eagerly so that keys are
    assigned and constraint or version failures surface at the call that
    caused them.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def find_by_key(self, entity_type: type[E], key: Any) -> E | None:
        with translate_errors(entity_type.__name__, "find_by_key"):
            return self._session.get(entity_type, key)

    def insert(self, entity: Any) -> None:
        with translate_errors(type(entity).__name__, "insert"):
            self._session.add(entity)
            self._session.flush()

    def merge(self, entity: E) -> E:
        with translate_errors(type(entity).__name__, "merge"):
            merged = self._session.merge(entity)
            self._session.flush()
            return merged

    def remove(self, entity: Any) -> None:
        if isinstance(entity, EntityReference):
            self._remove_reference(entity)
            return
        with translate_errors(type(entity).__name__, "remove"):
            self._session.delete(entity)
            self._session.flush()

    def _remove_reference(self, reference: EntityReference) -> None:
        name = reference.entity_type.__name__
        with translate_errors(name, "remove"):
            key_attr = _key_attribute(inspect(reference.entity_type))
            stmt = (
                delete(reference.entity_type)
                .where(key_attr == reference.key)
                .execution_options(synchronize_session=False)
            )
            result = self._session.execute(stmt)
        if result.rowcount == 0:
            raise EntityNotFoundError(entity_name=name, key=reference.key, operation="delete")

    def get_reference(self, entity_type: type[E], key: Any) -> E | EntityReference:
        """Return the loaded instance if the session has it, else a lazy reference."""
        loaded = self._session.identity_map.get(identity_key(entity_type, key))
        if loaded is not None:
            return loaded
        return EntityReference(entity_type=entity_type, key=key)

    def contains(self, entity: Any) -> bool:
        return entity in self._session

    def lock_for_version_increment(self, entity: Any) -> None:
        """Bump the version column now, even though no field changed.

        Issues ``UPDATE ... SET version = version + 1 WHERE pk = :pk AND
        version = :current``; no matching row means another transaction got
        there first.  When the entity has pending column changes the flush
        already bumps the version, so no second UPDATE is sent.
        """
        name = type(entity).__name__
        state = inspect(entity)
        mapper = state.mapper
        version_column = mapper.version_id_col
        if version_column is None:
            raise QueryError(
                entity_name=name,
                operation="force_increment_version",
                detail="entity has no version column",
            )
        if state.transient:
            raise InvalidArgumentError(
                entity_name=name,
                operation="force_increment_version",
                detail="entity has not been saved yet",
            )
        version_key = mapper.get_property_by_column(version_column).key
        flush_bumps_version = state.persistent and self._session.is_modified(
            entity, include_collections=False
        )

        with translate_errors(name, "force_increment_version"):
            self._session.flush()
            current = getattr(entity, version_key)
            key_values = mapper.primary_key_from_instance(entity)
            if current is None or any(value is None for value in key_values):
                raise InvalidArgumentError(
                    entity_name=name,
                    operation="force_increment_version",
                    detail="entity needs a key and a current version",
                )
            if flush_bumps_version:
                return
            stmt = (
                update(mapper.local_table)
                .where(*[column == value for column, value in zip(mapper.primary_key, key_values)])
                .where(version_column == current)
                .values({version_column: current + 1})
            )
            result = self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(
                entity_name=name,
                operation="force_increment_version",
                detail="The row was modified or deleted by another transaction.",
            )
        set_committed_value(entity, version_key, current + 1)

    def new_query_builder(self, entity_type: type[E]) -> SqlQueryBuilder[E]:
        return SqlQueryBuilder(self._session, entity_type)
