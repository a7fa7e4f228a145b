from pydantic import Field
from typing import Optional, List
from datetime import date, datetime
from app.models.profile import Availability
from app.schemas.base import CamelModel
from app.schemas.user import UserResponse


class JobSeekerProfileResponse(CamelModel):
    id: int
    title: Optional[str] = None
    experience: Optional[str] = None
    expected_salary: Optional[str] = None
    salary_currency: Optional[str] = None
    bio: Optional[str] = None
    availability: Optional[Availability] = None
    available_from: Optional[date] = None
    cv_file_path: Optional[str] = None
    certificates: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class EquipmentOwnerProfileResponse(CamelModel):
    id: int
    company_name: Optional[str] = None
    business_license: Optional[str] = None
    description: Optional[str] = None


class FreelancerProfileResponse(CamelModel):
    success: bool = True
    msg: Optional[str] = None
    user: UserResponse
    profile: Optional[JobSeekerProfileResponse] = None


class CertificateRemoval(CamelModel):
    certificate_url: str = Field(..., min_length=1)
