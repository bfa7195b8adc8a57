"""In-memory SQLite fixtures shared by the SQLAlchemy persistence tests."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from dataaccess.infrastructure.persistence import sql_repository
from widget_models import Widget, WidgetBase


@pytest.fixture
def engine():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    WidgetBase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def widgets(session):
    return sql_repository(session, Widget)


@pytest.fixture
def five_widgets(widgets):
    """Ranks 10..50, inserted out of rank order."""
    return widgets.save_all(
        Widget(name=name, rank=rank)
        for name, rank in [("c", 30), ("a", 10), ("e", 50), ("b", 20), ("d", 40)]
    )
