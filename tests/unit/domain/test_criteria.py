"""Tests for dataaccess/domain/models/criteria.py."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from dataaccess.domain.exceptions import InvalidArgumentError
from dataaccess.domain.models.criteria import (
    PaginatedResult,
    SearchCriteria,
    SortOrder,
    validate_criteria,
)
from dataaccess.domain.models.enums import SortDirection


# --- SortOrder ---

def test_sort_order_defaults_to_ascending():
    assert SortOrder(field="name").direction == SortDirection.ASC


def test_sort_order_desc_factory():
    order = SortOrder.desc("rank")
    assert order.field == "rank"
    assert order.direction == SortDirection.DESC


def test_sort_direction_compares_to_plain_string():
    assert SortDirection.DESC == "desc"


# --- SearchCriteria construction ---

def test_criteria_defaults():
    criteria = SearchCriteria()
    assert criteria.limit is None
    assert criteria.offset == 0
    assert criteria.sort == ()
    assert criteria.total is False
    assert criteria.timeout is None


def test_criteria_accepts_sort_pairs():
    criteria = SearchCriteria(sort=[("rank", "desc"), ("name", "asc")])
    assert criteria.sort == (SortOrder.desc("rank"), SortOrder.asc("name"))


def test_criteria_sort_pair_direction_is_case_insensitive():
    criteria = SearchCriteria(sort=[("rank", "DESC"), ("name", " Asc ")])
    assert criteria.sort == (SortOrder.desc("rank"), SortOrder.asc("name"))


def test_criteria_rejects_unknown_sort_direction():
    with pytest.raises(InvalidArgumentError, match="sort direction must be 'asc' or 'desc'"):
        SearchCriteria(sort=[("rank", "sideways")])


def test_sort_order_rejects_unknown_direction():
    with pytest.raises(InvalidArgumentError):
        SortOrder(field="rank", direction="up")


def test_criteria_accepts_sort_order_instances():
    criteria = SearchCriteria(sort=(SortOrder.desc("rank"),))
    assert criteria.sort[0].direction == SortDirection.DESC


def test_criteria_timeout_from_seconds():
    assert SearchCriteria(timeout=2).timeout == timedelta(seconds=2)


def test_criteria_is_frozen():
    criteria = SearchCriteria(limit=5)
    with pytest.raises(ValidationError):
        criteria.limit = 10  # type: ignore[misc]


def test_criteria_rejects_negative_offset():
    with pytest.raises(InvalidArgumentError, match="offset must be >= 0"):
        SearchCriteria(offset=-1)


def test_criteria_rejects_zero_limit():
    with pytest.raises(InvalidArgumentError, match="limit must be >= 1"):
        SearchCriteria(limit=0)


def test_criteria_rejects_negative_limit():
    with pytest.raises(InvalidArgumentError, match="limit must be >= 1"):
        SearchCriteria(limit=-5)


def test_criteria_rejects_non_positive_timeout():
    with pytest.raises(InvalidArgumentError, match="timeout must be positive"):
        SearchCriteria(timeout=timedelta(0))


def test_criteria_reports_every_problem():
    with pytest.raises(InvalidArgumentError) as excinfo:
        SearchCriteria(offset=-1, limit=0)
    assert "offset" in excinfo.value.detail
    assert "limit" in excinfo.value.detail


# --- for_page ---

def test_for_page_first_page_has_zero_offset():
    criteria = SearchCriteria.for_page(1, 20)
    assert criteria.offset == 0
    assert criteria.limit == 20


def test_for_page_third_page_offset():
    criteria = SearchCriteria.for_page(3, 10, total=True)
    assert criteria.offset == 20
    assert criteria.limit == 10
    assert criteria.total is True


def test_for_page_rejects_page_zero():
    with pytest.raises(InvalidArgumentError, match="page must be >= 1"):
        SearchCriteria.for_page(0, 10)


def test_for_page_rejects_empty_page_size():
    with pytest.raises(InvalidArgumentError, match="page size must be >= 1"):
        SearchCriteria.for_page(1, 0)


# --- validate_criteria ---

def test_validate_criteria_catches_unvalidated_construction():
    criteria = SearchCriteria.model_construct(limit=0)
    with pytest.raises(InvalidArgumentError) as excinfo:
        validate_criteria(criteria, entity_name="Widget", operation="find_paginated")
    assert excinfo.value.entity_name == "Widget"
    assert excinfo.value.operation == "find_paginated"


def test_validate_criteria_returns_valid_criteria():
    criteria = SearchCriteria(limit=3, offset=6)
    assert validate_criteria(criteria) is criteria


# --- PaginatedResult ---

def test_paginated_result_total_absent_by_default():
    result = PaginatedResult(items=[1, 2])
    assert result.total is None


def test_paginated_result_total_zero_is_kept():
    assert PaginatedResult(items=[], total=0).total == 0


def test_paginated_result_len_counts_items():
    assert len(PaginatedResult(items=["a", "b"], total=10)) == 2
    assert len(PaginatedResult(items=[])) == 0


def test_paginated_result_iterates_over_items():
    page = PaginatedResult(items=["a", "b"])
    assert list(page) == ["a", "b"]
    assert [item for item in page] == ["a", "b"]


def test_paginated_result_keeps_arbitrary_items():
    marker = object()
    assert PaginatedResult(items=[marker]).items[0] is marker
