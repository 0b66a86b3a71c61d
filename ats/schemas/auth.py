"""Authentication request/response schemas."""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from ats.models.enums import RoleName


class RegisterRequest(BaseModel):
    """Registration request schema."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    role_name: RoleName = RoleName.HIRING_MANAGER


class RegisterResponse(BaseModel):
    message: str
    user: "UserResponse"


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    code: str
    new_password: str = Field(..., min_length=8, max_length=100)


class UserResponse(BaseModel):
    """User response schema."""

    id: str
    name: str
    email: EmailStr
    avatar: Optional[str] = None
    role_id: str
    status: str
    joining_date: datetime
    created_at: datetime


RegisterResponse.model_rebuild()
