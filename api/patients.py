from typing import List
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import AuthContext, require_role
from models.enums import UserRole
from services.ai_service import AIService, get_ai_service
from services.medical_service import MedicalService
from services.patient_service import PatientService
from services.storage_service import StorageService, get_storage_service
from schemas.medical_schema import MedicalRecordResponse, PipelineResponse
from schemas.patient_schema import (
    PatientCreate,
    PatientDetailResponse,
    PatientListItem,
    PatientResponse,
    PatientUpdate,
)

router = APIRouter()

staff = require_role(UserRole.ADMIN, UserRole.DOCTOR)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/jpg"]

@router.get("/", response_model=List[PatientListItem])
def list_patients(
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    return PatientService(db, storage, auth).get_patients()

@router.post("/", response_model=PatientResponse, status_code=201)
def add_patient(
    body: PatientCreate,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    return PatientService(db, storage, auth).add_patient(body)

@router.get("/{patient_id}", response_model=PatientDetailResponse)
def get_patient(
    patient_id: int,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    return PatientService(db, storage, auth).get_patient_detail(patient_id)

@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    body: PatientUpdate,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    return PatientService(db, storage, auth).update_patient(patient_id, body)

@router.delete("/{patient_id}")
def delete_patient(
    patient_id: int,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    PatientService(db, storage, auth).delete_patient(patient_id)
    return {"success": True}

@router.get("/{patient_id}/records", response_model=List[MedicalRecordResponse])
def get_patient_records(
    patient_id: int,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service),
):
    return MedicalService(db, storage, ai, auth).get_history(patient_id)

# Upload an image and run it through the AI
@router.post("/{patient_id}/records", response_model=PipelineResponse, status_code=201)
def upload_medical_record(
    patient_id: int,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service),
):
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Only jpg/png images are accepted")

    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    result = MedicalService(db, storage, ai, auth).ingest(
        patient_id=patient_id,
        image_bytes=content,
        original_filename=file.filename,
        content_type=file.content_type,
    )
    return {"record": result.value, "warnings": result.warnings}

@router.post("/{patient_id}/reanalyze", response_model=PipelineResponse)
def reanalyze_patient(
    patient_id: int,
    auth: AuthContext = Depends(staff),
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    ai: AIService = Depends(get_ai_service),
):
    result = MedicalService(db, storage, ai, auth).reanalyze(patient_id)
    return {"record": result.value, "warnings": result.warnings}
