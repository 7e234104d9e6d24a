import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from impact_flow.domain.errors import ReferentialIntegrityError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def write_guard(db: Session, action: str):
    """Roll back and translate SQLAlchemy failures raised inside a write."""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity violation during {action}: {e.orig}")
        raise ReferentialIntegrityError(f"Failed to {action}: {e.orig}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during {action}: {e}")
        raise StorageError(f"Failed to {action}: {e}") from e
