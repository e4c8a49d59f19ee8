from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload
from models.activity import ActivityLog
from repositories.base_repo import BaseRepository

class ActivityRepository(BaseRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def create_log(self, user_id, action_type: str, description: str) -> ActivityLog:
        log = ActivityLog(user_id=user_id, action_type=action_type, description=description)
        self.db.add(log)
        self._commit(log)
        return log

    def get_recent(self, limit: int = 10):
        return (
            self.db.query(ActivityLog)
            .options(joinedload(ActivityLog.user))
            .order_by(desc(ActivityLog.timestamp), desc(ActivityLog.id))
            .limit(limit)
            .all()
        )

