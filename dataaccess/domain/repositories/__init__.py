"""Domain repository abstractions.

GenericRepository is the shared implementation; StoreSession and
QueryBuilder are the contracts it needs from a store.  The SQLAlchemy
implementations live in dataaccess.infrastructure.persistence and are wired
at the application boundary.
"""

from .base import GenericRepository
from .session import EntityReference, QueryBuilder, StoreSession

__all__ = [
    "GenericRepository",
    "EntityReference",
    "QueryBuilder",
    "StoreSession",
]
