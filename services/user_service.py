from typing import Optional
from sqlalchemy.orm import Session
from core.exceptions import AuthError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from core.logging_config import get_logger
from core.security import AuthContext, get_password_hash, verify_password
from models.enums import ActionType, UserRole, UserStatus
from repositories.user_repo import UserRepository
from schemas.user_schema import DoctorCreate, DoctorUpdate
from services.audit_service import AuditService

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, auth: Optional[AuthContext] = None):
        self.user_repo = UserRepository(db)
        self.audit = AuditService(db, auth)
        self.auth = auth

    # --- Authentication ---
    def authenticate_user(self, email: str, password: str):
        user = self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthError("Incorrect email or password")
        if user.status != UserStatus.ACTIVE:
            raise PermissionDeniedError("Account is not active")
        logger.info("user_login", user_id=user.id, role=user.role.value)
        return user

    def get_user_by_id(self, user_id: int):
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str):
        user = self.get_user_by_id(user_id)
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("incorrect_password")
        if not new_password or not new_password.strip():
            raise ValidationError("New password must not be empty")
        self.user_repo.update_user(user, password_hash=get_password_hash(new_password))
        self.audit.log(ActionType.CHANGE_PASSWORD, "User changed their password", user_id=user.id)
        return True

    def ensure_admin(self, name: str, email: str, password: str):
        """Create the admin account if missing; returns ``(user, created)``."""
        existing = self.user_repo.get_by_email(email)
        if existing:
            return existing, False
        admin = self.user_repo.create_user(
            name=name,
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN,
        )
        logger.info("admin_created", user_id=admin.id)
        return admin, True

    # --- Doctors ---
    def get_doctors(self):
        return self.user_repo.get_by_role(UserRole.DOCTOR)

    def add_doctor(self, doctor: DoctorCreate):
        if self.user_repo.get_by_email(doctor.email):
            raise ConflictError("Email is already in use")
        new_doctor = self.user_repo.create_user(
            name=doctor.name,
            email=doctor.email,
            hashed_password=get_password_hash(doctor.password),
            role=UserRole.DOCTOR,
            status=doctor.status,
            phone=doctor.phone,
            specialization=doctor.specialization,
        )
        self.audit.log(ActionType.ADD_DOCTOR, f"Added new doctor: {doctor.name}", user_id=new_doctor.id)
        return new_doctor

    def update_doctor(self, doctor_id: int, updates: DoctorUpdate):
        doctor = self._get_doctor(doctor_id)
        fields = updates.model_dump(exclude_unset=True, exclude={"password"})
        if "email" in fields and fields["email"] != doctor.email and self.user_repo.get_by_email(fields["email"]):
            raise ConflictError("Email is already in use")
        if updates.password and updates.password.strip():
            fields["password_hash"] = get_password_hash(updates.password)
        doctor = self.user_repo.update_user(doctor, **fields)
        self.audit.log(ActionType.UPDATE_DOCTOR, f"Updated doctor with ID: {doctor_id}")
        return doctor

    def delete_doctor(self, doctor_id: int):
        doctor = self._get_doctor(doctor_id)
        # Logs are history: they lose their actor but are never deleted
        unlinked = self.user_repo.delete_user(doctor)
        logger.info("doctor_deleted", doctor_id=doctor_id, unlinked_logs=unlinked)
        self.audit.log(ActionType.DELETE_DOCTOR, f"Deleted doctor with ID: {doctor_id}")
        return True

    def _get_doctor(self, doctor_id: int):
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.role != UserRole.DOCTOR:
            raise NotFoundError(f"Doctor {doctor_id} not found")
        return doctor
