"""Authentication router."""
from fastapi import APIRouter, Depends, status

from ats.database import Database, get_db
from ats.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from ats.services import users
from ats.utils.dependencies import get_current_active_user
from ats.utils.serialization import serialize


router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: Database = Depends(get_db)
):
    """Register a user; a verification code is mailed out."""
    result = await users.register_user(
        db,
        name=request.name,
        email=request.email,
        password=request.password,
        role_name=request.role_name.value,
    )
    message = (
        "Verification code resent to email"
        if result["resent"]
        else "User created successfully, verification link sent"
    )
    return RegisterResponse(message=message, user=UserResponse(**serialize(result["user"])))


@router.get("/verify", response_model=UserResponse)
async def verify(
    code: str,
    db: Database = Depends(get_db)
):
    """Verify a user from the emailed code."""
    user = await users.verify_user(db, code)
    return UserResponse(**serialize(user))


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: Database = Depends(get_db)
):
    """Login with email and password."""
    result = await users.authenticate(db, request.email, request.password)
    return TokenResponse(access_token=result["access_token"], expires_in=result["expires_in"])


@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest,
    db: Database = Depends(get_db)
):
    """Send a reset code if the email is known."""
    await users.request_password_reset(db, request.email)
    return {"message": "If the email exists, a reset code has been sent"}


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    db: Database = Depends(get_db)
):
    await users.reset_password(db, request.code, request.new_password)
    return {"message": "Password updated"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_active_user)
):
    """Get current user information."""
    return UserResponse(**serialize(current_user))
