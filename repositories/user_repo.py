from typing import Optional
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from models.users import User
from models.activity import ActivityLog
from models.enums import UserRole, UserStatus
from repositories.base_repo import BaseRepository

class UserRepository(BaseRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_role(self, role: UserRole):
        return self.db.query(User).filter(User.role == role).order_by(User.id.asc()).all()

    def count_by_role(self, role: UserRole) -> int:
        return self.db.query(func.count(User.id)).filter(User.role == role).scalar() or 0

    def create_user(self, name: str, email: str, hashed_password: str, role: UserRole,
                    status: UserStatus = UserStatus.ACTIVE, phone: str = None, specialization: str = None) -> User:
        new_user = User(
            name=name,
            email=email,
            password_hash=hashed_password,
            role=role,
            status=status,
            phone=phone,
            specialization=specialization,
        )
        self.db.add(new_user)
        self._commit(new_user)
        return new_user

    def update_user(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self._commit(user)
        return user

    def delete_user(self, user: User) -> int:
        """Delete ``user`` and null the actor on its activity logs in one commit; the log rows stay."""
        result = self.db.execute(
            update(ActivityLog)
            .where(ActivityLog.user_id == user.id)
            .values(user_id=None)
            .execution_options(synchronize_session="fetch")
        )
        self.db.delete(user)
        self._commit()
        return result.rowcount
