from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from schemas.medical_schema import MedicalRecordResponse

class PatientCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class PatientUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class PatientResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Row of the patient list: latest image URL and review status ("-" without records)
class PatientListItem(PatientResponse):
    image: Optional[str] = None
    review: str = "-"

class PatientDetailResponse(PatientResponse):
    latest_record: Optional[MedicalRecordResponse] = None
    image: Optional[str] = None
    ai_gradcam_image: Optional[str] = None
    doctor_brush_image: Optional[str] = None
