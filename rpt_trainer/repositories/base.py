from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import StorageException

logger = structlog.get_logger(__name__)


class SqlAlchemyRepository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        """Commit on success; roll back and raise ``StorageException`` on any database error."""
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("storage_operation_failed", action=action, repository=type(self).__name__)
            raise StorageException(f"Failed to {action}") from exc
