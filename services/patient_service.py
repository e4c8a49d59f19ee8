from typing import Optional
from sqlalchemy.orm import Session
from core.exceptions import NotFoundError
from core.security import AuthContext
from models.enums import ActionType
from repositories.medical_repo import MedicalRepository
from schemas.patient_schema import PatientCreate, PatientUpdate
from services.audit_service import AuditService
from services.storage_service import StorageService


class PatientService:
    def __init__(self, db: Session, storage: StorageService, auth: Optional[AuthContext] = None):
        self.repo = MedicalRepository(db)
        self.storage = storage
        self.audit = AuditService(db, auth)

    def get_patients(self):
        """Patients ordered by id, each with its latest image URL and review status."""
        results = []
        for patient in self.repo.get_all_patients():
            latest = patient.medical_records[-1] if patient.medical_records else None
            results.append({
                "id": patient.id,
                "name": patient.name,
                "email": patient.email,
                "phone": patient.phone,
                "address": patient.address,
                "created_at": patient.created_at,
                "image": self.storage.resolve_public_url(latest.original_image_path) if latest and latest.original_image_path else None,
                "review": latest.validation_status.value if latest else "-",
            })
        return results

    def get_patient_detail(self, patient_id: int):
        patient = self._get_patient(patient_id)
        latest = self.repo.get_latest_record(patient_id)

        def url(path):
            return self.storage.resolve_public_url(path) if path else None

        return {
            "id": patient.id,
            "name": patient.name,
            "email": patient.email,
            "phone": patient.phone,
            "address": patient.address,
            "created_at": patient.created_at,
            "latest_record": latest,
            "image": url(latest.original_image_path) if latest else None,
            "ai_gradcam_image": url(latest.ai_gradcam_path) if latest else None,
            "doctor_brush_image": url(latest.doctor_brush_path) if latest else None,
        }

    def add_patient(self, data: PatientCreate):
        patient = self.repo.create_patient(data.name, data.email, data.phone, data.address)
        self.audit.log(ActionType.ADD_PATIENT, f"Added new patient: {patient.name}")
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate):
        patient = self._get_patient(patient_id)
        patient = self.repo.update_patient(patient, **data.model_dump(exclude_unset=True))
        self.audit.log(ActionType.UPDATE_PATIENT, f"Updated patient with ID: {patient_id}")
        return patient

    def delete_patient(self, patient_id: int):
        patient = self._get_patient(patient_id)
        self.repo.delete_patient(patient)
        self.audit.log(ActionType.DELETE_PATIENT, f"Deleted patient with ID: {patient_id}")
        return True

    def _get_patient(self, patient_id: int):
        patient = self.repo.get_patient_by_id(patient_id)
        if not patient:
            raise NotFoundError(f"Patient {patient_id} not found")
        return patient
