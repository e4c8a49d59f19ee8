from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Text, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base
from .enums import ValidationStatus

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(20))
    address = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    medical_records = relationship(
        "MedicalRecord",
        back_populates="patient",
        order_by="MedicalRecord.revision",
        cascade="all, delete-orphan",
    )

class MedicalRecord(Base):
    """
    One revision of a patient's imaging/diagnosis state.

    The patient's current state is the row with the highest ``revision``.
    Reviews append a new revision; re-analysis rewrites the AI columns of the
    latest one.
    """
    __tablename__ = "medical_records"
    __table_args__ = (
        UniqueConstraint("patient_id", "revision", name="uq_medical_records_patient_revision"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    revision = Column(Integer, nullable=False, default=1)
    original_image_path = Column(Text)
    validation_status = Column(
        Enum(ValidationStatus, values_callable=lambda x: [e.value for e in x]),
        default=ValidationStatus.PENDING,
        nullable=False,
    )
    ai_diagnosis = Column(Text)
    ai_confidence = Column(Float)
    ai_gradcam_path = Column(Text)
    validator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    doctor_diagnosis = Column(String(255))
    doctor_notes = Column(Text)
    doctor_brush_path = Column(Text)
    is_ai_accurate = Column(Boolean)
    uploaded_at = Column(DateTime, default=datetime.utcnow)
    validated_at = Column(DateTime)

    # Relationships
    patient = relationship("Patient", back_populates="medical_records")
    validator = relationship("User", back_populates="validations")
