import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qc_api.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def committing(db: Session, action: str) -> Iterator[Session]:
    """
    Run a unit of work and commit it. Any SQLAlchemy failure is rolled back
    and surfaced as PersistenceError.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Persistence failure during %s: %s", action, e)
        raise PersistenceError(f"Could not {action}") from e


@contextmanager
def reading(db: Session, action: str) -> Iterator[Session]:
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Persistence failure during %s: %s", action, e)
        raise PersistenceError(f"Could not {action}") from e
