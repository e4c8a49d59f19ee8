from .base import Base
from .users import User
from .medical import Patient, MedicalRecord
from .activity import ActivityLog
from .enums import UserRole, UserStatus, ValidationStatus, ReviewAgreement, ActionType
