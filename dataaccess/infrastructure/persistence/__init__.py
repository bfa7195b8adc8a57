"""SQLAlchemy persistence package.

Exports the StoreSession / QueryBuilder implementations and the
sql_repository() factory for wiring a GenericRepository to an ORM session
at the application boundary.
"""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy.orm import Session

from dataaccess.domain.repositories.base import GenericRepository

from .errors import translate_errors
from .query import SqlQueryBuilder
from .session import SqlStoreSession

E = TypeVar("E")


def sql_repository(session: Session, entity_type: type[E]) -> GenericRepository[E, object]:
    """Construct a GenericRepository for ``entity_type`` bound to the given session.

    Intended for use at the application boundary:

        with SessionLocal.begin() as session:
            orders = sql_repository(session, Order)
            order = orders.find(order_id)
    """
    return GenericRepository(SqlStoreSession(session), entity_type)


__all__ = [
    "SqlQueryBuilder",
    "SqlStoreSession",
    "sql_repository",
    "translate_errors",
]
