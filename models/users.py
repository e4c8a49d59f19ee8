from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from models.base import Base
from .enums import UserRole, UserStatus

class User(Base):
    """Staff account (admin or doctor)."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, values_callable=lambda x: [e.value for e in x]), default=UserRole.DOCTOR, nullable=False)
    status = Column(Enum(UserStatus, values_callable=lambda x: [e.value for e in x]), default=UserStatus.ACTIVE, nullable=False)
    phone = Column(String(20))
    specialization = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    activity_logs = relationship("ActivityLog", back_populates="user")
    validations = relationship("MedicalRecord", back_populates="validator")
