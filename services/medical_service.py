import json
import mimetypes
import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import STORAGE_BUCKET
from core.exceptions import (
    InferenceError,
    NoImageError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from core.logging_config import get_logger
from core.security import AuthContext
from models.enums import (
    ActionType,
    ReviewAgreement,
    ValidationStatus,
    AI_DIAGNOSIS_FAILED,
)
from models.medical import MedicalRecord
from repositories.medical_repo import MedicalRepository
from repositories.user_repo import UserRepository
from services.ai_service import AIService, Prediction
from services.audit_service import AuditService
from services.storage_service import StorageService, RAW_PREFIX, MASKS_PREFIX, DERIVED_PREFIX

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class PipelineResult(Generic[T]):
    """Outcome of a pipeline: the value plus warnings from best-effort steps that failed."""
    value: T
    warnings: List[str] = field(default_factory=list)


def build_storage_path(prefix: str, patient_id: int, filename: str) -> str:
    _stem, ext = os.path.splitext(filename or "")
    stamp = int(time.time() * 1000)
    return f"{prefix}{patient_id}_{stamp}_{uuid.uuid4().hex[:8]}{ext.lower()}"


class MedicalService:
    """
    Case workflow orchestrator.

    Custody steps (original upload, record insert/update, fetch by id) raise
    and abort the pipeline. Enrichment steps (derived artifact relocation,
    annotation upload, reviewer lookup, audit log) are caught, logged and
    reported through ``PipelineResult.warnings``. Nothing is retried or
    compensated: an upload followed by a failed insert leaves the stored
    object behind.
    """

    def __init__(self, db: Session, storage: StorageService, ai: AIService,
                 auth: Optional[AuthContext] = None, bucket: str = STORAGE_BUCKET):
        self.db = db
        self.repo = MedicalRepository(db)
        self.user_repo = UserRepository(db)
        self.storage = storage
        self.ai = ai
        self.auth = auth
        self.audit = AuditService(db, auth)
        self.bucket = bucket

    # --- Ingest ---
    def ingest(self, patient_id: int, image_bytes: bytes, original_filename: str,
               content_type: str = "image/png") -> PipelineResult[MedicalRecord]:
        warnings: List[str] = []
        if not self.repo.get_patient_by_id(patient_id):
            raise NotFoundError(f"Patient {patient_id} not found")

        # 1. Original image; fatal
        file_path = build_storage_path(RAW_PREFIX, patient_id, original_filename)
        self.storage.upload(self.bucket, file_path, image_bytes, overwrite=False, content_type=content_type)

        # 2. Inference; a failure degrades to the sentinel so the image is still tracked
        ai_diagnosis = AI_DIAGNOSIS_FAILED
        ai_confidence = None
        gradcam_path = None
        outcome = AI_DIAGNOSIS_FAILED
        try:
            prediction = self.ai.predict(image_bytes, original_filename, content_type)
        except InferenceError as e:
            logger.warning("ingest_inference_failed", patient_id=patient_id, error=e.message)
            warnings.append(f"AI analysis failed: {e.message}")
        else:
            ai_diagnosis = json.dumps(prediction.raw)
            ai_confidence = prediction.confidence
            outcome = prediction.readable
            # 3. Derived artifact; best-effort
            gradcam_path = self._relocate_artifact(prediction, warnings)

        # 4. Record; fatal
        record = self.repo.create_record(
            patient_id,
            original_image_path=file_path,
            validation_status=ValidationStatus.PENDING,
            ai_diagnosis=ai_diagnosis,
            ai_confidence=ai_confidence,
            ai_gradcam_path=gradcam_path,
            uploaded_at=datetime.utcnow(),
        )
        logger.info("ingest_completed", patient_id=patient_id, record_id=record.id, outcome=outcome)

        # 5. Audit; best-effort
        self._audit(warnings, ActionType.UPLOAD_IMAGE,
                    f"Uploaded medical record for patient ID: {patient_id}. AI: {outcome}")
        return PipelineResult(record, warnings)

    # --- Review ---
    def review(self, record_id: int, agreement: str, note: Optional[str] = None,
               annotation_image: Optional[bytes] = None) -> PipelineResult[MedicalRecord]:
        warnings: List[str] = []
        try:
            agreement = ReviewAgreement(agreement)
        except ValueError:
            raise ValidationError("agreement must be 'agree' or 'disagree'")

        original = self.repo.get_record_by_id(record_id)
        if not original:
            raise NotFoundError(f"Medical record {record_id} not found")

        validator_id = self._resolve_reviewer_id(warnings)

        brush_path = None
        if annotation_image:
            mask_path = f"{MASKS_PREFIX}{original.patient_id}_review_{int(time.time() * 1000)}.png"
            try:
                self.storage.upload(self.bucket, mask_path, annotation_image, overwrite=True, content_type="image/png")
                brush_path = mask_path
            except StorageError as e:
                logger.warning("review_annotation_upload_failed", record_id=record_id, error=e.message)
                warnings.append(f"Annotation upload failed: {e.message}")

        agreed = agreement == ReviewAgreement.AGREE
        now = datetime.utcnow()
        record = self.repo.create_record(
            original.patient_id,
            original_image_path=original.original_image_path,
            ai_diagnosis=original.ai_diagnosis,
            ai_confidence=original.ai_confidence,
            ai_gradcam_path=original.ai_gradcam_path,
            validator_id=validator_id,
            doctor_notes=note,
            doctor_brush_path=brush_path,
            validation_status=ValidationStatus.VALIDATED,
            validated_at=now,
            is_ai_accurate=agreed,
            doctor_diagnosis="Agreed with AI" if agreed else "Disagreed with AI",
            uploaded_at=now,
        )
        logger.info("review_completed", reviewed_record_id=record_id, record_id=record.id,
                    patient_id=record.patient_id, agreed=agreed)

        self._audit(warnings, ActionType.DOCTOR_REVIEW,
                    f"Doctor submitted review (New Record) for patient {original.patient_id}")
        return PipelineResult(record, warnings)

    # --- Re-analysis ---
    def reanalyze(self, patient_id: int) -> PipelineResult[MedicalRecord]:
        warnings: List[str] = []
        if not self.repo.get_patient_by_id(patient_id):
            raise NotFoundError(f"Patient {patient_id} not found")

        latest = self.repo.get_latest_record(patient_id)
        if not latest or not latest.original_image_path:
            raise NoImageError()

        image_path = latest.original_image_path
        image_bytes = self.storage.download(self.bucket, image_path)
        filename = image_path.split("/")[-1]
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        # No sentinel here: a failed re-analysis leaves the record as it was
        prediction = self.ai.predict(image_bytes, filename, content_type)
        gradcam_path = self._relocate_artifact(prediction, warnings)

        updates = {
            "ai_diagnosis": json.dumps(prediction.raw),
            "ai_confidence": prediction.confidence,
            "uploaded_at": datetime.utcnow(),
        }
        if gradcam_path:
            updates["ai_gradcam_path"] = gradcam_path
        record = self.repo.update_record(latest, **updates)
        logger.info("reanalysis_completed", patient_id=patient_id, record_id=record.id, outcome=prediction.readable)

        self._audit(warnings, ActionType.AI_REANALYSIS,
                    f"AI Re-Analysis for patient {patient_id}: {prediction.readable}")
        return PipelineResult(record, warnings)

    # --- Reads ---
    def get_record(self, record_id: int) -> MedicalRecord:
        record = self.repo.get_record_by_id(record_id)
        if not record:
            raise NotFoundError(f"Medical record {record_id} not found")
        return record

    def get_history(self, patient_id: int) -> List[MedicalRecord]:
        if not self.repo.get_patient_by_id(patient_id):
            raise NotFoundError(f"Patient {patient_id} not found")
        return self.repo.get_records_by_patient(patient_id)

    # --- Best-effort helpers ---
    def _relocate_artifact(self, prediction: Prediction, warnings: List[str]) -> Optional[str]:
        if not prediction.gradcam_path:
            return None
        try:
            filename, data = self.ai.fetch_artifact(prediction.gradcam_path)
            storage_path = f"{DERIVED_PREFIX}{filename}"
            self.storage.upload(self.bucket, storage_path, data, overwrite=True, content_type="image/png")
        except (InferenceError, StorageError) as e:
            logger.warning("derived_artifact_relocation_failed", ref=prediction.gradcam_path, error=e.message)
            warnings.append(f"Derived artifact not stored: {e.message}")
            return None
        return storage_path

    def _resolve_reviewer_id(self, warnings: List[str]) -> Optional[int]:
        if not self.auth or not self.auth.email:
            warnings.append("Reviewer could not be resolved: no authenticated session")
            return None
        try:
            user = self.user_repo.get_by_email(self.auth.email)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("reviewer_lookup_failed", email=self.auth.email, error=str(e))
            warnings.append("Reviewer could not be resolved")
            return None
        if not user:
            warnings.append(f"Reviewer could not be resolved: no staff account for {self.auth.email}")
            return None
        return user.id

    def _audit(self, warnings: List[str], action_type: ActionType, description: str):
        if not self.audit.log(action_type, description):
            warnings.append(f"Activity log for {action_type.value} was not written")
