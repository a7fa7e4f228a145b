from pydantic import EmailStr, Field
from typing import Optional, List
from datetime import date, datetime
from app.models.profile import Availability
from app.schemas.base import CamelModel


class JobSeekerSearchRequest(CamelModel):
    job_title: Optional[str] = None  # matched against title and bio
    location: Optional[str] = None
    experience: Optional[str] = None
    availability: Optional[Availability] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class CandidateResponse(CamelModel):
    user_id: int
    user_name: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    title: Optional[str] = None
    experience: Optional[str] = None
    expected_salary: Optional[str] = None
    salary_currency: Optional[str] = None
    bio: Optional[str] = None
    availability: Optional[Availability] = None
    available_from: Optional[date] = None
    cv_file_path: Optional[str] = None
    certificates: List[str] = []
    updated_at: Optional[datetime] = None


class CandidateSearchResponse(CamelModel):
    success: bool = True
    count: int
    candidates: List[CandidateResponse]


class CandidateStats(CamelModel):
    total_candidates: int
    available_candidates: int
    with_cv: int


class CategoryCount(CamelModel):
    name: str
    count: int
    icon: str


class CategoriesResponse(CamelModel):
    success: bool = True
    categories: List[CategoryCount]
    total_professionals: int


class FreelancerContactRequest(CamelModel):
    freelancer_id: int
    recruiter_name: str = Field(..., min_length=1, max_length=255)
    recruiter_email: EmailStr
    recruiter_phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=1, max_length=2000)


class MediaUploadResponse(CamelModel):
    success: bool = True
    secure_url: str
    public_id: str
