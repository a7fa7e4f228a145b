import logging
from datetime import datetime
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from app.core.database import get_db, transaction
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.user import (
    LoginRequest, ForgotPasswordRequest, ResetPasswordRequest, AuthResponse, UserResponse
)
from app.services.email_service import email_service
from app.utils.auth import (
    get_password_hash, verify_password, create_user_token, generate_reset_code, reset_code_expiry
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/login", tags=["Authentication"])

FORGOT_PASSWORD_MSG = "If an account exists with this email, a reset code has been sent."


def _authenticate(db: Session, username_or_email: str, password: str) -> User:
    identifier = username_or_email.strip().lower()
    user = db.query(User).filter(
        or_(User.email == identifier, func.lower(User.user_name) == identifier)
    ).first()

    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/login", response_model=AuthResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = _authenticate(db, credentials.username_or_email, credentials.password)
    logger.info("Login: user_id=%s roles_selected=%s", user.id, user.roles_selected)

    return AuthResponse(
        msg="Login successful",
        token=create_user_token(user),
        user=UserResponse.model_validate(user),
        requires_role_selection=not user.roles_selected,
    )


@router.post("/token", response_model=dict)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """OAuth2 compatible token endpoint for Swagger UI"""
    user = _authenticate(db, form_data.username, form_data.password)
    return {
        "access_token": create_user_token(user),
        "token_type": "bearer"
    }


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Always answers the same way so the endpoint cannot be used to discover accounts."""
    user = db.query(User).filter(User.email == payload.email.lower()).first()

    if user:
        code = generate_reset_code()
        with transaction(db):
            user.reset_token = code
            user.reset_token_expiry = reset_code_expiry()
        background_tasks.add_task(
            email_service.send_password_reset_code, user.email, user.first_name, code
        )
        logger.info("Password reset code issued: user_id=%s", user.id)

    return MessageResponse(msg=FORGOT_PASSWORD_MSG)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    query = db.query(User).filter(
        User.reset_token == payload.token,
        User.reset_token_expiry > datetime.utcnow(),
    )
    if payload.email:
        query = query.filter(User.email == payload.email.lower())
    user = query.first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset code",
        )

    with transaction(db):
        user.password_hash = get_password_hash(payload.new_password)
        # Single use
        user.reset_token = None
        user.reset_token_expiry = None

    background_tasks.add_task(email_service.send_password_changed, user.email, user.first_name)
    logger.info("Password reset completed: user_id=%s", user.id)

    return MessageResponse(msg="Password has been reset successfully. You can now log in.")
