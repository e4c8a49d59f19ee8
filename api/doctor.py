from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import AuthContext, require_role
from models.enums import UserRole
from services.dashboard_service import DashboardService
from schemas.dashboard_schema import DoctorStats

router = APIRouter()

@router.get("/stats", response_model=DoctorStats)
def doctor_stats(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_role(UserRole.DOCTOR, UserRole.ADMIN)),
):
    """Sidebar counters of the doctor dashboard."""
    return DashboardService(db).get_doctor_stats()
