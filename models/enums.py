import enum

class UserRole(str, enum.Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"

class UserStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"

class ValidationStatus(str, enum.Enum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"

class ReviewAgreement(str, enum.Enum):
    AGREE = "agree"
    DISAGREE = "disagree"

# Tags written to activity_logs.action_type
class ActionType(str, enum.Enum):
    ADD_DOCTOR = "ADD_DOCTOR"
    UPDATE_DOCTOR = "UPDATE_DOCTOR"
    DELETE_DOCTOR = "DELETE_DOCTOR"
    ADD_PATIENT = "ADD_PATIENT"
    UPDATE_PATIENT = "UPDATE_PATIENT"
    DELETE_PATIENT = "DELETE_PATIENT"
    UPLOAD_IMAGE = "UPLOAD_IMAGE"
    AI_REANALYSIS = "AI_REANALYSIS"
    DOCTOR_REVIEW = "DOCTOR_REVIEW"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"

# Stored in medical_records.ai_diagnosis when inference fails during ingest
AI_DIAGNOSIS_FAILED = "Analysis Failed"
