"""Domain model package.

All domain objects are pure Python / Pydantic types with no ORM or driver
dependencies.  Import from this package rather than individual modules.
"""

from .criteria import PaginatedResult, SearchCriteria, SortOrder, validate_criteria
from .entity import Entity
from .enums import EntityState, SortDirection

__all__ = [
    # enums
    "EntityState",
    "SortDirection",
    # entity
    "Entity",
    # criteria
    "PaginatedResult",
    "SearchCriteria",
    "SortOrder",
    "validate_criteria",
]
