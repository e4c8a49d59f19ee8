# FILE: api/admin.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from core.database import get_db
from core.security import AuthContext, require_role
from services.user_service import UserService
from services.dashboard_service import DashboardService
from schemas.user_schema import DoctorCreate, DoctorUpdate, UserResponse
from schemas.dashboard_schema import ActivityItem, StatCard
from models.enums import UserRole

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)

# Mounted under "/api/admin" in main.py
@router.get("/doctors", response_model=List[UserResponse])
def list_doctors(auth: AuthContext = Depends(admin_only), db: Session = Depends(get_db)):
    return UserService(db, auth).get_doctors()

@router.post("/doctors", response_model=UserResponse, status_code=201)
def add_doctor(body: DoctorCreate, auth: AuthContext = Depends(admin_only), db: Session = Depends(get_db)):
    return UserService(db, auth).add_doctor(body)

@router.put("/doctors/{doctor_id}", response_model=UserResponse)
def update_doctor(doctor_id: int, body: DoctorUpdate, auth: AuthContext = Depends(admin_only),
                  db: Session = Depends(get_db)):
    return UserService(db, auth).update_doctor(doctor_id, body)

@router.delete("/doctors/{doctor_id}")
def delete_doctor(doctor_id: int, auth: AuthContext = Depends(admin_only), db: Session = Depends(get_db)):
    UserService(db, auth).delete_doctor(doctor_id)
    return {"success": True}

@router.get("/stats", response_model=List[StatCard])
def dashboard_stats(auth: AuthContext = Depends(admin_only), db: Session = Depends(get_db)):
    return DashboardService(db).get_admin_stats()

@router.get("/activities", response_model=List[ActivityItem])
def recent_activities(auth: AuthContext = Depends(admin_only), db: Session = Depends(get_db)):
    return DashboardService(db).get_recent_activities(limit=10)
