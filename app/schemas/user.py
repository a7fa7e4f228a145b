from pydantic import EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.models.user import UserType
from app.schemas.base import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,30}$"


def _required_name(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be empty")
    return v


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return v.strip() or None


class UserBase(CamelModel):
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=100)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)

    @field_validator("phone", "location")
    @classmethod
    def strip_optional(cls, v):
        return _optional_text(v)


class UserCreate(UserBase):
    user_name: str = Field(..., pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, min_length=6)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        return None if v is None else _required_name(v)


class RoleSelection(CamelModel):
    is_freelancer: bool = False
    is_equipment_owner: bool = False
    primary_role: Optional[str] = None


class LoginRequest(CamelModel):
    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=6)
    # Codes are only 6 digits; the email narrows the lookup when given
    email: Optional[EmailStr] = None


class UserResponse(CamelModel):
    id: int
    user_name: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    location: Optional[str] = None
    user_type: Optional[UserType] = None
    is_freelancer: bool
    is_equipment_owner: bool
    roles_selected: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    success: bool = True
    msg: str
    token: str
    user: UserResponse
    requires_role_selection: bool = False


class UserListResponse(CamelModel):
    success: bool = True
    users: List[UserResponse]
    total: int
    page: int
    limit: int


class UserStats(CamelModel):
    total_users: int
    freelancers: int
    equipment_owners: int
    both_roles: int
    pending_role_selection: int


class RoleSelectionResponse(AuthResponse):
    user_type: UserType
