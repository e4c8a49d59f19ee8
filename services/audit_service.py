from typing import Optional
from sqlalchemy.orm import Session
from core.exceptions import AppError
from core.logging_config import get_logger
from core.security import AuthContext
from models.enums import ActionType
from repositories.activity_repo import ActivityRepository

logger = get_logger(__name__)


class AuditService:
    """Best-effort writer of activity_logs rows; never raises."""

    def __init__(self, db: Session, auth: Optional[AuthContext] = None):
        self.repo = ActivityRepository(db)
        self.auth = auth

    def log(self, action_type: ActionType, description: str, user_id: Optional[int] = None) -> bool:
        actor_id = user_id if user_id is not None else (self.auth.user_id if self.auth else None)
        try:
            self.repo.create_log(actor_id, action_type.value, description)
        except AppError as e:
            logger.warning("audit_log_failed", action_type=action_type.value, error=e.message)
            return False
        return True
