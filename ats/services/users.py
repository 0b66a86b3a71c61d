"""User registration, verification and login."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument

from ats.config import settings
from ats.database import Database
from ats.errors import (
    AuthenticationFailed,
    ConflictError,
    InvalidReference,
    NotFoundError,
    PermissionDenied,
    ValidationFailed,
    conflict_on_duplicate,
)
from ats.models.enums import UserStatus
from ats.models.user import CredentialModel, UserModel
from ats.services.mailer import Mailer
from ats.utils.security import create_access_token, generate_code, hash_password, verify_password

logger = logging.getLogger(__name__)


async def register_user(
    db: Database,
    name: str,
    email: str,
    password: str,
    role_name: str,
    mailer: Optional[Mailer] = None,
) -> dict:
    """Create an unverified user and send the verification code.

    Registering again with an email that is still unverified refreshes the
    name, password and code instead of failing.
    """
    if not password or not password.strip():
        raise ValidationFailed("Password is required", {"password": ["Password is required"]})

    role = await db.roles.find_one({"name": role_name})
    if not role:
        raise InvalidReference("role_name", f"{role_name} role not found")

    now = datetime.utcnow()
    verify_code = generate_code()
    password_hash = hash_password(password)

    async with db.transaction() as session:
        existing = await db.users.find_one({"email": email}, session=session)
        if existing and existing["status"] != UserStatus.UNVERIFIED.value:
            raise ConflictError("User with this email already exists and is verified")

        if existing:
            credential = await db.credentials.find_one({"user_id": existing["_id"]}, session=session)
            if not credential:
                raise NotFoundError("Credential not found for existing user")

            await db.users.update_one(
                {"_id": existing["_id"]},
                {"$set": {"name": name, "updated_at": now}},
                session=session,
            )
            await db.credentials.update_one(
                {"_id": credential["_id"]},
                {"$set": {
                    "password_hash": password_hash,
                    "verify_code": verify_code,
                    "verify_code_issued_at": now,
                    "updated_at": now,
                }},
                session=session,
            )
            user = await db.users.find_one({"_id": existing["_id"]}, session=session)
            resent = True
        else:
            user_model = UserModel(name=name, email=email, role_id=role["_id"])
            user = user_model.to_document()
            with conflict_on_duplicate("Email already exists"):
                result = await db.users.insert_one(user, session=session)
            user["_id"] = result.inserted_id

            credential = CredentialModel(
                user_id=user["_id"],
                password_hash=password_hash,
                verify_code=verify_code,
                verify_code_issued_at=now,
            )
            await db.credentials.insert_one(credential.to_document(), session=session)
            resent = False

    mailer = mailer or Mailer()
    await mailer.send_verification(email, name, verify_code)

    logger.info("Registered user %s (resent=%s)", user["_id"], resent)
    return {"user": user, "resent": resent}


async def verify_user(db: Database, code: str) -> dict:
    """Mark the user owning ``code`` as verified."""
    if not code:
        raise ValidationFailed("Verification code is required", {"code": ["Verification code is required"]})

    credential = await db.credentials.find_one({"verify_code": code})
    if not credential:
        raise ValidationFailed("Invalid or expired verification link", {"code": ["Invalid verification code"]})

    issued_at = credential.get("verify_code_issued_at") or credential["created_at"]
    if issued_at < datetime.utcnow() - timedelta(minutes=settings.verify_code_ttl_minutes):
        raise ValidationFailed("Verification link has expired", {"code": ["Verification link has expired"]})

    now = datetime.utcnow()
    async with db.transaction() as session:
        user = await db.users.find_one({"_id": credential["user_id"]}, session=session)
        if not user:
            raise NotFoundError("User not found")

        await db.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"status": UserStatus.VERIFIED.value, "updated_at": now}},
            session=session,
        )
        await db.credentials.update_one(
            {"_id": credential["_id"]},
            {"$set": {"verify_code": None, "verify_code_issued_at": None, "updated_at": now}},
            session=session,
        )

    user["status"] = UserStatus.VERIFIED.value
    return user


async def authenticate(db: Database, email: str, password: str) -> dict:
    """Check credentials and issue an access token."""
    user = await db.users.find_one({"email": email})
    credential = await db.credentials.find_one({"user_id": user["_id"]}) if user else None
    if not user or not credential or not verify_password(password, credential["password_hash"]):
        raise AuthenticationFailed("Incorrect email or password")

    if user["status"] == UserStatus.SUSPENDED.value:
        raise PermissionDenied("User account is suspended")
    if user["status"] != UserStatus.VERIFIED.value:
        raise PermissionDenied("User account is not verified")

    access_token = create_access_token({"sub": str(user["_id"])})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
        "user": user,
    }


async def request_password_reset(db: Database, email: str, mailer: Optional[Mailer] = None) -> bool:
    """Issue a reset code; unknown emails are silently ignored."""
    user = await db.users.find_one({"email": email})
    if not user:
        return False

    code = generate_code()
    await db.credentials.update_one(
        {"user_id": user["_id"]},
        {"$set": {"forgot_code": code, "forgot_code_issued_at": datetime.utcnow(), "updated_at": datetime.utcnow()}},
    )
    mailer = mailer or Mailer()
    await mailer.send_password_reset(email, code)
    return True


async def reset_password(db: Database, code: str, new_password: str) -> ObjectId:
    credential = await db.credentials.find_one({"forgot_code": code}) if code else None
    if not credential:
        raise ValidationFailed("Invalid or expired reset code", {"code": ["Invalid reset code"]})

    issued_at = credential.get("forgot_code_issued_at")
    if issued_at is None or issued_at < datetime.utcnow() - timedelta(minutes=settings.verify_code_ttl_minutes):
        raise ValidationFailed("Reset code has expired", {"code": ["Reset code has expired"]})

    await db.credentials.update_one(
        {"_id": credential["_id"]},
        {"$set": {
            "password_hash": hash_password(new_password),
            "forgot_code": None,
            "forgot_code_issued_at": None,
            "updated_at": datetime.utcnow(),
        }},
    )
    logger.info("Password reset for user %s", credential["user_id"])
    return credential["user_id"]


async def get_user(db: Database, user_id: ObjectId) -> Optional[dict]:
    return await db.users.find_one({"_id": user_id})


async def set_user_status(db: Database, user_id: ObjectId, status: UserStatus) -> dict:
    """Verify or suspend a user."""
    result = await db.users.find_one_and_update(
        {"_id": user_id},
        {"$set": {"status": UserStatus(status).value, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not result:
        raise NotFoundError("User not found")
    return result
