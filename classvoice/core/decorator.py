import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classvoice.core.exceptions import AlreadyExists, StorageError

logger = logging.getLogger(__name__)


def db_exception(func):
    """
    Translate raw SQLAlchemy errors escaping a service method into domain errors.

    Only the first positional argument is inspected for a ``db`` attribute so the
    session can be rolled back before the error propagates.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as e:
            _rollback(args)
            logger.warning(f"Integrity error in {func.__qualname__}: {e.orig}")
            raise AlreadyExists("Duplicate entry: already exists")
        except SQLAlchemyError as e:
            _rollback(args)
            logger.error(f"Database error in {func.__qualname__}: {e}")
            raise StorageError("Database error occurred")

    return wrapper


def _rollback(args):
    db = getattr(args[0], "db", None) if args else None
    if db is not None:
        db.rollback()
