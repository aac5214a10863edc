import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import FRONTEND_URL, PASSWORD_RESET_EXPIRE_MINUTES
from ..database import get_db
from ..email_service import send_password_reset_email
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UserResponse,
)
from ..security_utils import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

login_rate_limit = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")
register_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
password_reset_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="password_reset")

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a password reset link has been sent."


def utc_now_naive() -> datetime:
    """Current UTC time in the naive form the users table stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def issue_token(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(user.id), user.role),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    _: None = Depends(register_rate_limit),
):
    """Create an account and return an access token"""
    existing = (
        db.query(User).filter(or_(User.username == data.username, User.email == data.email)).first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="Username or email already registered")

    user = User(
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
        role="user",
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        # Taken between the check and the insert
        db.rollback()
        raise HTTPException(status_code=400, detail="Username or email already registered") from e

    logger.info(f"🆕 User registered: {user.username}")
    return issue_token(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(login_rate_limit),
):
    user = db.query(User).filter(User.username == data.username.strip()).first()
    if not user or not verify_password(data.password, user.hashed_password):
        logger.warning(f"⚠️ Failed login for username: {data.username}")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    logger.info(f"✅ User logged in: {user.username}")
    return issue_token(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


# ==================== Password Reset ====================


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    _: None = Depends(password_reset_rate_limit),
):
    """Email a single-use reset link; the response never reveals whether the account exists"""
    user = db.query(User).filter(User.email == data.email).first()
    if not user:
        logger.info("Password reset requested for unknown email")
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    token, token_hash = generate_reset_token()
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = utc_now_naive() + timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES)
    db.commit()

    reset_link = f"{FRONTEND_URL}/reset-password?token={token}"
    try:
        await send_password_reset_email(user.email, reset_link)
        logger.info(f"📧 Password reset email sent to user {user.id}")
    except Exception as e:
        logger.error(f"❌ Failed to send password reset email to user {user.id}: {e}")

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password using the emailed token"""
    user = db.query(User).filter(User.reset_token_hash == hash_reset_token(data.token)).first()

    if not user or not user.reset_token_expires_at:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    if utc_now_naive() > user.reset_token_expires_at:
        user.reset_token_hash = None
        user.reset_token_expires_at = None
        db.commit()
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.hashed_password = hash_password(data.newPassword)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()

    logger.info(f"Password reset for user: {user.id}")
    return MessageResponse(message="Password reset successful")


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    data: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(data.currentPassword, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.hashed_password = hash_password(data.newPassword)
    db.commit()
    logger.info(f"Password updated for user: {current_user.id}")
    return MessageResponse(message="Password updated successfully")
