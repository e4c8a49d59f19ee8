from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from core.logging_config import get_logger
from models.enums import UserRole, ValidationStatus
from repositories.activity_repo import ActivityRepository
from repositories.medical_repo import MedicalRepository
from repositories.user_repo import UserRepository

logger = get_logger(__name__)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.medical_repo = MedicalRepository(db)
        self.user_repo = UserRepository(db)
        self.activity_repo = ActivityRepository(db)

    def _safe_count(self, name: str, query) -> int:
        # A failing counter shows 0 instead of breaking the whole dashboard
        try:
            return query()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("dashboard_count_failed", counter=name, error=str(e))
            return 0

    def get_admin_stats(self):
        return [
            {"label": "Total Patient", "value": self._safe_count("patients", self.medical_repo.count_patients),
             "icon": "users", "color": "blue"},
            {"label": "Total Doctor",
             "value": self._safe_count("doctors", lambda: self.user_repo.count_by_role(UserRole.DOCTOR)),
             "icon": "user-md", "color": "green"},
            {"label": "Image Uploaded", "value": self._safe_count("images", self.medical_repo.count_records_with_image),
             "icon": "image", "color": "blue"},
            {"label": "Waiting For Review",
             "value": self._safe_count("pending", lambda: self.medical_repo.count_records_by_status(ValidationStatus.PENDING)),
             "icon": "clock", "color": "red"},
        ]

    def get_doctor_stats(self):
        return {
            "total": self._safe_count("patients", self.medical_repo.count_patients),
            "pending": self._safe_count(
                "pending", lambda: self.medical_repo.count_records_by_status(ValidationStatus.PENDING)),
            "completed": self._safe_count(
                "validated", lambda: self.medical_repo.count_records_by_status(ValidationStatus.VALIDATED)),
            "attention": self._safe_count(
                "rejected", lambda: self.medical_repo.count_records_by_status(ValidationStatus.REJECTED)),
        }

    def get_recent_activities(self, limit: int = 10):
        return [
            {
                "id": log.id,
                "title": log.action_type,
                "description": log.description,
                "user": log.user.name if log.user else "Unknown",
                "time": log.timestamp,
            }
            for log in self.activity_repo.get_recent(limit)
        ]
