"""Translation of SQLAlchemy failures into domain errors."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from agency.core.errors import AppError, ConflictAppError, DatabaseAppError, NotFoundAppError

logger = logging.getLogger(__name__)


@contextmanager
def translate_db_errors(operation: str, resource: str) -> Iterator[None]:
    """Re-raise driver errors from the wrapped block as AppError subclasses.

    Unique constraint violations become ConflictAppError (409); anything else
    from SQLAlchemy becomes DatabaseAppError (500) without the driver message.
    Domain errors raised inside the block pass through untouched.
    """
    try:
        yield
    except AppError:
        raise
    except IntegrityError as exc:
        logger.warning(
            "db.integrity_error",
            extra={"operation": operation, "resource": resource, "error_type": type(exc.orig).__name__},
        )
        raise ConflictAppError(
            code=f"{resource}_conflict",
            message=f"The {resource} conflicts with an existing record",
            details={"resource": resource},
        ) from exc
    except SQLAlchemyError as exc:
        logger.error(
            "db.error",
            extra={"operation": operation, "resource": resource, "error_type": type(exc).__name__},
        )
        raise DatabaseAppError(
            code="database_error",
            message="The database request failed. Please try again later.",
            details={"resource": resource, "context": {"operation": operation}},
        ) from exc


def like_pattern(term: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped (escape char ``\\``)."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def not_found(resource: str, resource_id: int | str) -> AppError:
    return NotFoundAppError(
        code=f"{resource}_not_found",
        message=f"{resource.replace('_', ' ').capitalize()} not found",
        details={"resource": resource, "resource_id": resource_id},
    )
