import logging
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlmodel import Session

from bookstore.errors import BookstoreError, ConflictError, UnavailableError

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
_PG_CONFLICT_CODES = {"40001", "40P01"}


def is_conflict(exc: SQLAlchemyError) -> bool:
    """True when the database refused a write because of a concurrent writer."""
    if not isinstance(exc, DBAPIError):
        return False
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode in _PG_CONFLICT_CODES:
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig).lower()
        return "database is locked" in message or "database table is locked" in message
    return False


def classify_db_error(exc: SQLAlchemyError) -> BookstoreError:
    if is_conflict(exc):
        return ConflictError("Concurrent modification detected, please retry")
    return UnavailableError("Storage temporarily unavailable, please retry")


@contextmanager
def atomic(session: Session):
    """Commit the block as one transaction or roll all of it back.

    Domain errors propagate unchanged; raw SQLAlchemy errors are re-raised as
    ConflictError or UnavailableError.
    """
    try:
        yield session
        session.commit()
    except BookstoreError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Transaction rolled back: {e.__class__.__name__}: {e}")
        raise classify_db_error(e) from e
    except Exception:
        session.rollback()
        raise
