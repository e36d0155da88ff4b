"""
User Routes

POST /users/login - Login and get JWT token
POST /users/forgot-password - Issue a 30 minute password reset token
POST /users/reset-password/{token} - Set a new password with a reset token
GET /users/profile - Current user's profile
PUT /users/profile - Update name / email / department
PUT /users/change-password - Change password (current password required)
POST /users/register - Create a staff account (admin only)
GET /users - List users (admin only)
"""

from fastapi import APIRouter, Depends
from pymongo.database import Database

from app.api.responses import success
from app.core.auth import get_current_admin, get_current_user
from app.core.config import get_settings
from app.db.mongodb import get_database
from app.schemas.schemas import (
    ChangePasswordRequest, ForgotPasswordRequest, LoginRequest, ProfileUpdate,
    RegisterRequest, ResetPasswordRequest
)
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Database = Depends(get_database)) -> UserService:
    return UserService(db, reset_expire_minutes=get_settings().password_reset_expire_minutes)


@router.post("/login")
def login(request: LoginRequest, service: UserService = Depends(get_user_service)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return success(service.login(request.email, request.password), message="Login successful")


@router.post("/forgot-password")
def forgot_password(request: ForgotPasswordRequest, service: UserService = Depends(get_user_service)):
    # No mail transport: the token is returned to the caller
    return success(service.forgot_password(request.email), message="Password reset token generated")


@router.post("/reset-password/{token}")
def reset_password(token: str, request: ResetPasswordRequest, service: UserService = Depends(get_user_service)):
    service.reset_password(token, request.password)
    return success(message="Password reset successful")


@router.get("/profile")
def get_profile(user: dict = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    return success(service.get_profile(user["_id"]))


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    user: dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Password and role cannot be changed here."""
    return success(service.update_profile(user["_id"], update), message="Profile updated successfully")


@router.put("/change-password")
def change_password(
    request: ChangePasswordRequest,
    user: dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    service.change_password(user["_id"], request.current_password, request.new_password)
    return success(message="Password changed successfully")


@router.post("/register", status_code=201)
def register(
    request: RegisterRequest,
    admin: dict = Depends(get_current_admin),
    service: UserService = Depends(get_user_service)
):
    return success(service.register(request), message="User registered successfully")


@router.get("")
def list_users(admin: dict = Depends(get_current_admin), service: UserService = Depends(get_user_service)):
    users = service.list_users()
    return success(users, count=len(users))
