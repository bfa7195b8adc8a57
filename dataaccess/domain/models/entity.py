"""Entity protocol shared by every repository."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Entity(Protocol):
    """Any record type exposing a nullable primary key as ``id``.

    Identity is defined solely by this key: ``None`` means the entity has
    never been persisted.
    """

    id: Any
