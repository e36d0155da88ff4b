"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- Password reset tokens (only the sha256 digest is stored)
- FastAPI dependencies for protected and role-gated routes
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from app.core.config import get_settings
from app.core.errors import AuthError
from app.db.mongodb import get_collection, get_database
from app.services.query_builder import parse_object_id

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing headers are reported by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)

STAFF_ROLES = ("admin", "reviewer", "admission_officer")

# Never sent to clients
PRIVATE_USER_FIELDS = {"password": 0, "passwordResetToken": 0, "passwordResetExpires": 0}


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    """Return (raw token for the user, digest to store)."""
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_database)
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        def route(user: dict = Depends(get_current_user)):
            return user
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authenticated. Please log in to get access.")

    payload = decode_token(credentials.credentials)
    if not payload:
        raise AuthError("Invalid or expired token")

    user_id = parse_object_id(payload.get("sub") or "")
    if user_id is None:
        raise AuthError("Invalid or expired token")

    # Verify user still exists
    user = get_collection(db, "users").find_one({"_id": user_id}, PRIVATE_USER_FIELDS)
    if not user:
        raise AuthError("The user belonging to this token no longer exists")

    if not user.get("isActive", True):
        raise AuthError("Your account has been deactivated")

    return user


def require_roles(*roles: str):
    """
    Dependency factory - allow only users whose role is in `roles`.

    Usage:
        @router.delete("/{id}")
        def route(user: dict = Depends(require_roles("admin"))):
            ...
    """
    def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise AuthError("You do not have permission to perform this action")
        return user

    return dependency


get_current_admin = require_roles("admin")
get_current_staff = require_roles(*STAFF_ROLES)
