from pydantic import EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.models.equipment import EquipmentAvailability, InquiryStatus
from app.schemas.base import CamelModel
from app.schemas.user import UserResponse
from app.schemas.profile import EquipmentOwnerProfileResponse


# ─── Equipment ────────────────────────────────────────────────────────────────

class EquipmentCreate(CamelModel):
    equipment_name: str = Field(..., min_length=1, max_length=255)
    equipment_type: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    # Omitted contact fields default to the owner's account details
    contact_person: Optional[str] = Field(None, max_length=100)
    contact_number: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[EmailStr] = None
    availability: EquipmentAvailability = EquipmentAvailability.AVAILABLE
    equipment_images: List[str] = []

    @field_validator("equipment_name", "equipment_type")
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class EquipmentUpdate(CamelModel):
    equipment_name: Optional[str] = Field(None, min_length=1, max_length=255)
    equipment_type: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=100)
    contact_number: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[EmailStr] = None
    availability: Optional[EquipmentAvailability] = None
    # A list replaces the stored images, None keeps them
    equipment_images: Optional[List[str]] = None


class EquipmentResponse(CamelModel):
    id: int
    user_id: int
    equipment_name: str
    equipment_type: str
    location: Optional[str] = None
    contact_person: str
    contact_number: Optional[str] = None
    contact_email: str
    availability: EquipmentAvailability
    equipment_images: List[str] = []
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class EquipmentListResponse(CamelModel):
    success: bool = True
    count: int
    equipment: List[EquipmentResponse]


class EquipmentStats(CamelModel):
    total: int
    available: int
    on_hire: int
    locations: int
    types: int


class EquipmentStatsResponse(CamelModel):
    success: bool = True
    statistics: EquipmentStats


class LocationsResponse(CamelModel):
    success: bool = True
    locations: List[str]


# ─── Owner profile ────────────────────────────────────────────────────────────

class OwnerProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=255)
    business_license: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class OwnerDashboardResponse(CamelModel):
    success: bool = True
    user: UserResponse
    profile: Optional[EquipmentOwnerProfileResponse] = None
    equipment: List[EquipmentResponse] = []


# ─── Inquiries ────────────────────────────────────────────────────────────────

class InquiryCreate(CamelModel):
    equipment_id: int
    requester_name: str = Field(..., min_length=1, max_length=255)
    requester_email: EmailStr
    requester_phone: Optional[str] = Field(None, max_length=20)
    message: str = Field(..., min_length=1, max_length=2000)


class InquiryResponse(CamelModel):
    id: int
    equipment_id: int
    requester_name: str
    requester_email: str
    requester_phone: Optional[str] = None
    message: str
    status: InquiryStatus
    created_at: datetime


class InquiryStatusUpdate(CamelModel):
    status: InquiryStatus
