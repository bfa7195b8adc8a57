"""Domain enumerations for the data-access layer.

String-valued enums use the str mixin so they compare equal to plain strings
("asc" / "desc") and serialize cleanly.
"""

from enum import Enum


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class EntityState(str, Enum):
    """Tracking state of an entity relative to a store session.

    NEW      — no primary key yet; never persisted
    MANAGED  — key present and tracked by the current session
    DETACHED — key present but not tracked (e.g. built from request data)
    """

    NEW = "new"
    MANAGED = "managed"
    DETACHED = "detached"
