import logging
from contextlib import contextmanager
from typing import Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from ....db.models.scheduling.appointment import SLOT_UNIQUE_INDEX
from ....db.models.scheduling.schedule import OVERRIDE_DAY_CONSTRAINT
from ....exceptions import ConflictError, UpstreamError

logger = logging.getLogger(__name__)


def violates_unique(exc: IntegrityError, name: str, table: str, columns: Sequence[str]) -> bool:
    message = str(exc.orig)
    # sqlite reports the indexed columns instead of the constraint name
    sqlite_message = "UNIQUE constraint failed: " + ", ".join(f"{table}.{c}" for c in columns)
    return name in message or sqlite_message in message


def is_slot_violation(exc: IntegrityError) -> bool:
    return violates_unique(exc, SLOT_UNIQUE_INDEX, "appointments", ("doctor_id", "scheduled_date", "start_time"))


def is_override_day_violation(exc: IntegrityError) -> bool:
    return violates_unique(exc, OVERRIDE_DAY_CONSTRAINT, "doctor_schedule_overrides", ("doctor_id", "branch_id", "override_date"))


@contextmanager
def store_errors(session: Session, operation: str):
    """Roll back and translate driver failures into the service error types."""
    try:
        yield
    except IntegrityError as e:
        session.rollback()
        if is_slot_violation(e):
            raise ConflictError() from e
        logger.error(f"Integrity error during {operation}: {str(e)}")
        raise UpstreamError(f"Failed to {operation}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database error during {operation}: {str(e)}")
        raise UpstreamError(f"Failed to {operation}") from e
