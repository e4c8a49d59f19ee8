from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from core.exceptions import ConflictError, PersistenceError
from core.logging_config import get_logger

logger = get_logger(__name__)

class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, *instances):
        """Commit the session, refresh ``instances`` and map driver errors to domain errors."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("repo_integrity_error", error=str(e.orig))
            raise ConflictError("Conflicting write, please retry") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("repo_commit_failed", error=str(e))
            raise PersistenceError("Database write failed") from e
        for instance in instances:
            self.db.refresh(instance)
