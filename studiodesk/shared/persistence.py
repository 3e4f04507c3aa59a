"""Translate SQLAlchemy failures into the reconciliation error taxonomy"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def store_call(db: Session, action: str):
    """
    Wrap a single read or write against the store.

    Any SQLAlchemy error rolls the session back and is re-raised as PersistenceError
    naming the action. NoResultFound is re-raised untouched so lookups can treat the
    empty result as a branch instead of a failure.
    """
    try:
        yield
    except NoResultFound:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Store rejected {action}: {e}")
        raise PersistenceError(f"{action} failed: {e}") from e
