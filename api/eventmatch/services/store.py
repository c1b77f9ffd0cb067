import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreReadFailure

logger = logging.getLogger(__name__)


@contextmanager
def store_read(db, context: str, detail: str | None = None):
    """Turn a failed query inside the block into ``StoreReadFailure``."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[store] {context} read failed: {exc}")
        raise StoreReadFailure(detail) from exc
