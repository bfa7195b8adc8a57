"""Translation of SQLAlchemy / driver exceptions into domain exceptions."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from dataaccess.domain.exceptions import (
    ConflictError,
    DuplicateEntityError,
    PersistenceError,
    QueryError,
    QueryTimeoutError,
)

logger = logging.getLogger(__name__)

# SQLSTATE query_canceled, raised by PostgreSQL when statement_timeout fires.
_PG_QUERY_CANCELED = "57014"


def is_timeout(exc: DBAPIError) -> bool:
    """Detect a statement cancelled because it ran past its timeout."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_QUERY_CANCELED:  # psycopg2
        return True
    if getattr(orig, "sqlstate", None) == _PG_QUERY_CANCELED:  # psycopg 3
        return True
    message = str(orig).lower()
    # sqlite3 reports an interrupt from the progress handler as "interrupted".
    return "interrupted" in message or "timeout" in message or "timed out" in message


@contextmanager
def translate_errors(entity_name: str, operation: str) -> Iterator[None]:
    """Re-raise driver errors from the enclosed block as PersistenceError subclasses.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except PersistenceError:
        raise
    except StaleDataError as exc:
        logger.error("%s failed for %s: version mismatch", operation, entity_name)
        raise ConflictError(
            entity_name=entity_name,
            operation=operation,
            detail="The row was modified or deleted by another transaction.",
            cause=exc,
        ) from exc
    except IntegrityError as exc:
        logger.error("%s failed for %s: duplicate or constraint violation", operation, entity_name)
        raise DuplicateEntityError(
            entity_name=entity_name,
            operation=operation,
            detail="A record with the same key or unique constraint already exists.",
            cause=exc,
        ) from exc
    except OperationalError as exc:
        if is_timeout(exc):
            logger.error("%s failed for %s: query timed out", operation, entity_name)
            raise QueryTimeoutError(
                entity_name=entity_name,
                operation=operation,
                detail="Query exceeded its timeout.",
                cause=exc,
            ) from exc
        logger.error("%s failed for %s: %s", operation, entity_name, type(exc).__name__)
        raise QueryError(
            entity_name=entity_name,
            operation=operation,
            detail="Database operation failed.",
            cause=exc,
        ) from exc
    except SQLAlchemyError as exc:
        logger.error("%s failed for %s: %s", operation, entity_name, type(exc).__name__)
        raise QueryError(
            entity_name=entity_name,
            operation=operation,
            detail="Query execution failed.",
            cause=exc,
        ) from exc
