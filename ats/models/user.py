"""User, role and credential database models."""
from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from ats.models.common import DocumentModel, PyObjectId
from ats.models.enums import RoleName, Permission, UserStatus


class RoleModel(DocumentModel):
    """Role with a unique name."""

    name: RoleName
    description: Optional[str] = None


class RolePermissionModel(DocumentModel):
    """Grants one permission to one role."""

    role_id: PyObjectId
    permission: Permission


class UserModel(DocumentModel):
    """User database model."""

    name: str
    email: EmailStr
    avatar: Optional[str] = None
    role_id: PyObjectId
    status: UserStatus = UserStatus.UNVERIFIED
    joining_date: datetime = Field(default_factory=datetime.utcnow)


class CredentialModel(DocumentModel):
    """Secrets kept apart from the user document (1:1 on ``user_id``)."""

    user_id: PyObjectId
    password_hash: str
    verify_code: Optional[str] = None
    verify_code_issued_at: Optional[datetime] = None
    forgot_code: Optional[str] = None
    forgot_code_issued_at: Optional[datetime] = None
