"""Generic data access: typed CRUD and paginated search over a store session."""

from dataaccess.domain.exceptions import (
    ConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
    InvalidArgumentError,
    PersistenceError,
    QueryError,
    QueryTimeoutError,
)
from dataaccess.domain.models import (
    Entity,
    EntityState,
    PaginatedResult,
    SearchCriteria,
    SortDirection,
    SortOrder,
)
from dataaccess.domain.repositories import (
    EntityReference,
    GenericRepository,
    QueryBuilder,
    StoreSession,
)

__all__ = [
    "ConflictError",
    "DuplicateEntityError",
    "Entity",
    "EntityNotFoundError",
    "EntityReference",
    "EntityState",
    "GenericRepository",
    "InvalidArgumentError",
    "PaginatedResult",
    "PersistenceError",
    "QueryBuilder",
    "QueryError",
    "QueryTimeoutError",
    "SearchCriteria",
    "SortDirection",
    "SortOrder",
    "StoreSession",
]
