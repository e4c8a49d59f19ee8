from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import AuthContext, require_role
from models.enums import UserRole
from services.ai_service import AIService, get_ai_service
from services.medical_service import MedicalService
from services.storage_service import StorageService, get_storage_service
from schemas.medical_schema import MedicalRecordResponse, PipelineResponse

router = APIRouter()

staff = require_role(UserRole.ADMIN, UserRole.DOCTOR)

@router.get("/{record_id}", response_model=MedicalRecordResponse)
def get_record_detail(
    record_id: int,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service),
):
    return MedicalService(db, storage, ai, auth).get_record(record_id)

# The review is stored as a new revision; the reviewed record is left untouched
@router.post("/{record_id}/review", response_model=PipelineResponse, status_code=201)
def review_record(
    record_id: int,
    agreement: str = Form(...),
    note: Optional[str] = Form(None),
    annotation: Optional[UploadFile] = File(None),
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service),
):
    annotation_bytes = annotation.file.read() if annotation is not None else None
    result = MedicalService(db, storage, ai, auth).review(
        record_id,
        agreement=agreement,
        note=note,
        annotation_image=annotation_bytes or None,
    )
    return {"record": result.value, "warnings": result.warnings}
