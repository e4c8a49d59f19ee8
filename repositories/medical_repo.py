from typing import Optional
from sqlalchemy import desc, func
from sqlalchemy.orm import Session, joinedload
from models.medical import Patient, MedicalRecord
from models.enums import ValidationStatus
from repositories.base_repo import BaseRepository

class MedicalRepository(BaseRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    # --- Patients ---
    def get_patient_by_id(self, patient_id: int) -> Optional[Patient]:
        return self.db.query(Patient).filter(Patient.id == patient_id).first()

    def get_all_patients(self):
        return self.db.query(Patient).order_by(Patient.id.asc()).all()

    def create_patient(self, name: str, email: str = None, phone: str = None, address: str = None) -> Patient:
        patient = Patient(name=name, email=email, phone=phone, address=address)
        self.db.add(patient)
        self._commit(patient)
        return patient

    def update_patient(self, patient: Patient, **fields) -> Patient:
        for key, value in fields.items():
            setattr(patient, key, value)
        self._commit(patient)
        return patient

    def delete_patient(self, patient: Patient):
        self.db.delete(patient)
        self._commit()

    def count_patients(self) -> int:
        return self.db.query(func.count(Patient.id)).scalar() or 0

    # --- Medical records ---
    def get_record_by_id(self, record_id: int) -> Optional[MedicalRecord]:
        return (
            self.db.query(MedicalRecord)
            .options(joinedload(MedicalRecord.patient))
            .filter(MedicalRecord.id == record_id)
            .first()
        )

    def get_latest_record(self, patient_id: int) -> Optional[MedicalRecord]:
        return (
            self.db.query(MedicalRecord)
            .filter(MedicalRecord.patient_id == patient_id)
            .order_by(desc(MedicalRecord.revision))
            .first()
        )

    def get_records_by_patient(self, patient_id: int):
        return (
            self.db.query(MedicalRecord)
            .filter(MedicalRecord.patient_id == patient_id)
            .order_by(MedicalRecord.revision.asc())
            .all()
        )

    def next_revision(self, patient_id: int) -> int:
        current = (
            self.db.query(func.max(MedicalRecord.revision))
            .filter(MedicalRecord.patient_id == patient_id)
            .scalar()
        )
        return (current or 0) + 1

    def create_record(self, patient_id: int, **fields) -> MedicalRecord:
        # The unique (patient_id, revision) pair rejects a concurrent append racing for the same slot
        record = MedicalRecord(patient_id=patient_id, revision=self.next_revision(patient_id), **fields)
        self.db.add(record)
        self._commit(record)
        return record

    def update_record(self, record: MedicalRecord, **fields) -> MedicalRecord:
        for key, value in fields.items():
            setattr(record, key, value)
        self._commit(record)
        return record

    def count_records_with_image(self) -> int:
        return (
            self.db.query(func.count(MedicalRecord.id))
            .filter(MedicalRecord.original_image_path.isnot(None))
            .scalar()
            or 0
        )

    def count_records_by_status(self, status: ValidationStatus) -> int:
        return (
            self.db.query(func.count(MedicalRecord.id))
            .filter(MedicalRecord.validation_status == status)
            .scalar()
            or 0
        )
