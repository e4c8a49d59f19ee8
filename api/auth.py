from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import AuthContext, create_token_for_user, get_auth_context, get_current_user
from models.users import User
from services.user_service import UserService
from schemas.user_schema import ChangePasswordRequest, LoginResponse, UserResponse

router = APIRouter()

@router.post("/login", response_model=LoginResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    # form_data.username carries the email
    user_service = UserService(db)
    user = user_service.authenticate_user(form_data.username, form_data.password)
    return {
        "access_token": create_token_for_user(user),
        "token_type": "bearer",
        "role": user.role,
        "user": user,
    }

@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user

@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    UserService(db, auth).change_password(auth.user_id, body.current_password, body.new_password)
    return {"success": True}
