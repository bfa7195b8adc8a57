"""SQLAlchemy engine, session factory, declarative base and session scope."""

from collections.abc import Generator

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+pysqlite:///:memory:"
    echo_sql: bool = False
    pool_pre_ping: bool = True


settings = Settings()

engine = create_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=settings.pool_pre_ping,
)

SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for ORM entities."""


def get_session() -> Generator[Session, None, None]:
    """Yield a session inside one transaction (the unit of work).

    Commits when the consumer finishes normally, rolls back if it raises.
    Suitable as a FastAPI-style dependency or via contextlib.contextmanager.
    """
    with SessionLocal() as session:
        with session.begin():
            yield session
