import logging
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from src.core.exceptions import StoreError

logger = logging.getLogger(__name__)


class SQLStore:
    """Common base for stores that work on a request-scoped session"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store failure while {action}: {str(e)}")
            raise StoreError(f"Store failure while {action}", cause=e) from e
