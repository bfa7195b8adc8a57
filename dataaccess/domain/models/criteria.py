"""Search criteria and paginated result value objects.

These are pure value objects owned by the caller: a SearchCriteria describes
which page of a query to fetch, how to sort it, whether to count the
unpaged total, and how long the store may spend on it.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dataaccess.domain.exceptions import InvalidArgumentError

from .enums import SortDirection

E = TypeVar("E")


class SortOrder(BaseModel):
    """One ORDER BY term: an entity attribute name and a direction."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1)
    direction: SortDirection = SortDirection.ASC

    @field_validator("direction", mode="before")
    @classmethod
    def _normalise_direction(cls, value: Any) -> Any:
        if isinstance(value, SortDirection):
            return value
        if isinstance(value, str):
            value = value.strip().lower()
        try:
            return SortDirection(value)
        except ValueError:
            raise InvalidArgumentError(
                entity_name="SortOrder",
                operation="validate",
                detail=f"sort direction must be 'asc' or 'desc', got {value!r}",
            ) from None

    @classmethod
    def asc(cls, field: str) -> SortOrder:
        return cls(field=field, direction=SortDirection.ASC)

    @classmethod
    def desc(cls, field: str) -> SortOrder:
        return cls(field=field, direction=SortDirection.DESC)


class SearchCriteria(BaseModel):
    """Pagination, sort and timeout settings for one search.

    limit   — maximum number of hits; None returns every row from offset on,
              so callers must bound large tables themselves
    offset  — number of leading hits to skip
    sort    — ORDER BY terms applied in sequence
    total   — also count every row matching the unpaged predicate
    timeout — execution budget handed to the store as a hint

    Invariants (enforced at construction and again by the repository):
      offset >= 0, limit > 0 when set, timeout > 0 when set.
    Violations raise InvalidArgumentError, not a pydantic ValidationError.
    """

    model_config = ConfigDict(frozen=True)

    limit: int | None = None
    offset: int = 0
    sort: tuple[SortOrder, ...] = ()
    total: bool = False
    timeout: timedelta | None = None

    @field_validator("sort", mode="before")
    @classmethod
    def _coerce_sort_pairs(cls, value: Any) -> Any:
        # Accept ("field", "desc") pairs alongside SortOrder instances.
        if isinstance(value, (list, tuple)):
            return tuple(
                {"field": item[0], "direction": item[1]}
                if isinstance(item, (list, tuple))
                else item
                for item in value
            )
        return value

    @model_validator(mode="after")
    def _valid_pagination(self) -> SearchCriteria:
        validate_criteria(self)
        return self

    @classmethod
    def for_page(
        cls,
        page: int,
        size: int,
        *,
        sort: tuple[SortOrder, ...] = (),
        total: bool = False,
        timeout: timedelta | None = None,
    ) -> SearchCriteria:
        """Named constructor for 1-based page numbering."""
        if page < 1:
            raise InvalidArgumentError(
                entity_name="SearchCriteria",
                operation="validate",
                detail=f"page must be >= 1, got {page}",
            )
        if size < 1:
            raise InvalidArgumentError(
                entity_name="SearchCriteria",
                operation="validate",
                detail=f"page size must be >= 1, got {size}",
            )
        return cls(
            limit=size,
            offset=(page - 1) * size,
            sort=sort,
            total=total,
            timeout=timeout,
        )


class PaginatedResult(BaseModel, Generic[E]):
    """One page of entities plus the optional unpaged total.

    total is None when the count was not requested; 0 means it was counted
    and nothing matched.
    """

    model_config = ConfigDict(frozen=True)

    items: list[E]
    total: int | None = Field(default=None, ge=0)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[E]:  # type: ignore[override]
        return iter(self.items)


def validate_criteria(
    criteria: SearchCriteria,
    *,
    entity_name: str = "SearchCriteria",
    operation: str = "validate",
) -> SearchCriteria:
    """Raise InvalidArgumentError unless criteria satisfies its invariants.

    Also used by the repository on criteria built with ``model_construct``,
    which skips validation.
    """
    problems: list[str] = []
    if criteria.offset is None or criteria.offset < 0:
        problems.append(f"offset must be >= 0, got {criteria.offset}")
    if criteria.limit is not None and criteria.limit < 1:
        problems.append(f"limit must be >= 1, got {criteria.limit}")
    if criteria.timeout is not None and criteria.timeout <= timedelta(0):
        problems.append(f"timeout must be positive, got {criteria.timeout}")
    if problems:
        raise InvalidArgumentError(
            entity_name=entity_name,
            operation=operation,
            detail="; ".join(problems),
        )
    return criteria
