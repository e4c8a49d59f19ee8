from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from models.enums import UserRole, UserStatus

# --- INPUT Schemas ---
class DoctorCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    status: UserStatus = UserStatus.ACTIVE
    phone: Optional[str] = None
    specialization: Optional[str] = None

class DoctorUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None  # blank keeps the current password
    status: Optional[UserStatus] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

# --- OUTPUT Schemas ---
class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    phone: Optional[str] = None
    specialization: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole
    user: UserResponse
