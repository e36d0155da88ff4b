"""
User Service - staff accounts, login and password management
for the users collection.

Passwords are stored as bcrypt hashes and password reset tokens as
sha256 digests; neither ever leaves this module (see PRIVATE_USER_FIELDS).
"""

import logging
from datetime import timedelta
from typing import Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.auth import (
    PRIVATE_USER_FIELDS, create_access_token, generate_reset_token,
    hash_password, hash_reset_token, verify_password
)
from app.core.errors import AuthError, BusinessRuleError, NotFound
from app.db.mongodb import get_collection
from app.schemas.schemas import ProfileUpdate, RegisterRequest
from app.services.mongo_service import utcnow

logger = logging.getLogger(__name__)


def public_user(doc: Optional[dict]) -> Optional[dict]:
    """Drop the password and reset-token fields from a user document."""
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k not in PRIVATE_USER_FIELDS}


class UserService:
    """
    Handles user documents.
    """

    def __init__(self, db: Database, reset_expire_minutes: int = 30):
        self.collection: Collection = get_collection(db, "users")
        self.reset_expire_minutes = reset_expire_minutes

    def register(self, request: RegisterRequest) -> dict:
        if self.collection.find_one({"email": request.email}, {"_id": 1}):
            raise BusinessRuleError("User with this email already exists")

        now = utcnow()
        doc = {
            "name": request.name,
            "email": request.email,
            "password": hash_password(request.password),
            "role": request.role.value,
            "department": request.department,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise BusinessRuleError("User with this email already exists")
        doc["_id"] = result.inserted_id
        logger.info("Registered %s user %s", doc["role"], doc["email"])
        return public_user(doc)

    def login(self, email: str, password: str) -> dict:
        """
        Verify credentials and issue a JWT.

        Returns {"token": ..., "user": ...}.
        """
        user = self.collection.find_one({"email": email})
        if not user or not verify_password(password, user["password"]):
            raise AuthError("Invalid email or password")

        if not user.get("isActive", True):
            raise AuthError("Your account has been deactivated")

        now = utcnow()
        self.collection.update_one({"_id": user["_id"]}, {"$set": {"lastLogin": now}})
        user["lastLogin"] = now

        token = create_access_token(data={"sub": str(user["_id"]), "role": user["role"]})
        logger.info("User %s logged in", email)
        return {"token": token, "user": public_user(user)}

    def get_profile(self, user_id) -> dict:
        user = self.collection.find_one({"_id": user_id}, PRIVATE_USER_FIELDS)
        if user is None:
            raise NotFound("User not found")
        return user

    def update_profile(self, user_id, update: ProfileUpdate) -> dict:
        changes = update.model_dump(exclude_unset=True)
        if changes.get("email"):
            clash = self.collection.find_one({"email": changes["email"], "_id": {"$ne": user_id}}, {"_id": 1})
            if clash:
                raise BusinessRuleError("User with this email already exists")
        changes["updatedAt"] = utcnow()

        user = self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": changes},
            projection=PRIVATE_USER_FIELDS,
            return_document=ReturnDocument.AFTER
        )
        if user is None:
            raise NotFound("User not found")
        return user

    def change_password(self, user_id, current_password: str, new_password: str):
        user = self.collection.find_one({"_id": user_id})
        if user is None:
            raise NotFound("User not found")
        if not verify_password(current_password, user["password"]):
            raise AuthError("Current password is incorrect")

        self.collection.update_one(
            {"_id": user_id},
            {"$set": {"password": hash_password(new_password), "updatedAt": utcnow()}}
        )
        logger.info("Password changed for user %s", user_id)

    def list_users(self) -> list:
        return list(
            self.collection.find({}, PRIVATE_USER_FIELDS)
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        )

    def forgot_password(self, email: str) -> dict:
        """
        Store a reset-token digest valid for reset_expire_minutes.

        Returns the raw token and its expiry; there is no mail transport,
        so the caller hands the token to the user.
        """
        user = self.collection.find_one({"email": email}, {"_id": 1})
        if user is None:
            raise NotFound("User not found")

        token, digest = generate_reset_token()
        expires = utcnow() + timedelta(minutes=self.reset_expire_minutes)
        self.collection.update_one(
            {"_id": user["_id"]},
            {"$set": {"passwordResetToken": digest, "passwordResetExpires": expires}}
        )
        logger.info("Password reset requested for %s", email)
        return {"resetToken": token, "expiresAt": expires}

    def reset_password(self, token: str, password: str):
        """Set a new password from a valid reset token; the token is then cleared."""
        now = utcnow()
        user = self.collection.find_one({
            "passwordResetToken": hash_reset_token(token),
            "passwordResetExpires": {"$gt": now}
        }, {"_id": 1})
        if user is None:
            raise BusinessRuleError("Token is invalid or has expired")

        self.collection.update_one(
            {"_id": user["_id"]},
            {
                "$set": {"password": hash_password(password), "updatedAt": now},
                "$unset": {"passwordResetToken": "", "passwordResetExpires": ""}
            }
        )
        logger.info("Password reset completed for user %s", user["_id"])
