from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from models.enums import ValidationStatus

class MedicalRecordResponse(BaseModel):
    id: int
    patient_id: int
    revision: int
    original_image_path: Optional[str] = None
    validation_status: ValidationStatus
    ai_diagnosis: Optional[str] = None
    ai_confidence: Optional[float] = None
    ai_gradcam_path: Optional[str] = None
    validator_id: Optional[int] = None
    doctor_diagnosis: Optional[str] = None
    doctor_notes: Optional[str] = None
    doctor_brush_path: Optional[str] = None
    is_ai_accurate: Optional[bool] = None
    uploaded_at: Optional[datetime] = None
    validated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Result of ingest/review/reanalyze; warnings list the best-effort steps that failed
class PipelineResponse(BaseModel):
    record: MedicalRecordResponse
    warnings: List[str] = []
