"""
utils/auth.py

Password hashing (bcrypt through passlib), signed JWT bearer tokens and
one-time password reset codes. Tokens are stateless: logging out is the
client discarding its token.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def token_claims(user) -> dict:
    """Role claims carried by every token issued for `user`."""
    return {
        "sub": str(user.id),
        "email": user.email,
        "userType": user.user_type.value if user.user_type else None,
        "isFreelancer": bool(user.is_freelancer),
        "isEquipmentOwner": bool(user.is_equipment_owner),
        "rolesSelected": bool(user.roles_selected),
    }


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT.

    Args:
        data: claims to encode, at least {"sub": user_id}
        expires_delta: optional custom lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        The encoded token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({"iat": now, "exp": expire, "iss": settings.TOKEN_ISSUER})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user) -> str:
    return create_access_token(token_claims(user))


def decode_token(token: str) -> Optional[dict]:
    """Return the token payload, or None if it is malformed, tampered or expired."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
        )
    except InvalidTokenError:
        return None


def generate_reset_code() -> str:
    """Six digit numeric one-time code."""
    return str(secrets.randbelow(900000) + 100000)


def reset_code_expiry() -> datetime:
    # Naive UTC, matching the DateTime columns
    return datetime.utcnow() + timedelta(minutes=settings.RESET_CODE_EXPIRE_MINUTES)
