"""Tests for SqlQueryBuilder: statement shape and execution on SQLite."""

import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text

from dataaccess.domain.exceptions import InvalidArgumentError, QueryTimeoutError
from dataaccess.domain.models.enums import SortDirection
from dataaccess.infrastructure.persistence.query import SqlQueryBuilder
from widget_models import Tag, Widget


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": True})).lower()


# --- statement shape ---

def test_builder_methods_chain(session):
    query = SqlQueryBuilder(session, Widget)
    assert query.where(Widget.rank > 1).order_by("rank", SortDirection.ASC) is query


def test_statement_applies_order_offset_and_limit(session):
    query = (
        SqlQueryBuilder(session, Widget)
        .where(Widget.rank > 1)
        .order_by("rank", SortDirection.DESC)
        .order_by("name", SortDirection.ASC)
        .set_offset(4)
        .set_limit(2)
    )
    sql = _sql(query.statement())
    assert "where widgets.rank > 1" in sql
    assert "order by widgets.rank desc, widgets.name asc" in sql
    assert "limit 2" in sql
    assert "offset 4" in sql


def test_count_statement_drops_paging_and_order(session):
    query = (
        SqlQueryBuilder(session, Widget)
        .where(Widget.rank > 1)
        .order_by("rank", SortDirection.DESC)
        .set_offset(4)
        .set_limit(2)
    )
    sql = _sql(query.count_statement())
    assert "count(*)" in sql
    assert "where widgets.rank > 1" in sql
    assert "order by" not in sql
    assert "limit" not in sql
    assert "offset" not in sql


def test_where_key_in_targets_primary_key(session):
    sql = _sql(SqlQueryBuilder(session, Widget).where_key_in([1, 2]).statement())
    assert "widgets.id in (1, 2)" in sql


# --- argument validation ---

def test_unknown_sort_field_rejected(session):
    with pytest.raises(InvalidArgumentError, match="unknown sort field"):
        SqlQueryBuilder(session, Widget).order_by("colour", SortDirection.ASC)


def test_zero_limit_rejected(session):
    with pytest.raises(InvalidArgumentError):
        SqlQueryBuilder(session, Widget).set_limit(0)


def test_negative_offset_rejected(session):
    with pytest.raises(InvalidArgumentError):
        SqlQueryBuilder(session, Widget).set_offset(-1)


def test_non_positive_timeout_rejected(session):
    with pytest.raises(InvalidArgumentError):
        SqlQueryBuilder(session, Widget).set_timeout(timedelta(0))


# --- execution ---

def test_execute_and_count(session):
    session.add_all([Tag(label="x"), Tag(label="y"), Tag(label="z")])
    session.flush()

    query = SqlQueryBuilder(session, Tag).order_by("label", SortDirection.DESC).set_limit(2)

    assert [t.label for t in query.execute()] == ["z", "y"]
    assert query.execute_count() == 3


def test_count_on_empty_table(session):
    assert SqlQueryBuilder(session, Tag).execute_count() == 0


def test_sqlite_timeout_interrupts_long_query(session):
    session.add(Tag(label="x"))
    session.flush()
    slow = text(
        "(WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 100000000) "
        "SELECT count(*) FROM c) > 0"
    )
    query = SqlQueryBuilder(session, Tag).where(slow).set_timeout(timedelta(milliseconds=50))

    with pytest.raises(QueryTimeoutError):
        query.execute()


def test_sqlite_progress_handler_cleared_after_query(session):
    raw = session.connection().connection.driver_connection
    SqlQueryBuilder(session, Tag).set_timeout(timedelta(milliseconds=1)).execute()
    time.sleep(0.01)

    # Past the deadline: a handler left installed would interrupt this.
    row = raw.execute(
        "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 10000) "
        "SELECT count(*) FROM c"
    ).fetchone()
    assert row == (10000,)


def test_postgres_timeout_uses_set_local():
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "postgresql"
    session.scalars.return_value.all.return_value = []
    query = SqlQueryBuilder(session, Widget).set_timeout(timedelta(seconds=2))

    query.execute()

    statements = [str(c.args[0]) for c in session.execute.call_args_list]
    assert statements == [
        "SET LOCAL statement_timeout = 2000",
        "SET LOCAL statement_timeout TO DEFAULT",
    ]


def test_unsupported_dialect_runs_without_timeout():
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "oracle"
    session.scalar.return_value = 4
    query = SqlQueryBuilder(session, Widget).set_timeout(timedelta(seconds=2))

    assert query.execute_count() == 4
    session.execute.assert_not_called()
