from sqlalchemy import Column, String, Integer, Text, Date, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.models.types import JSONList, enum_values
import enum

class Availability(str, enum.Enum):
    AVAILABLE = "available"
    BUSY = "busy"

class JobSeekerProfile(BaseModel):
    __tablename__ = "job_seekers"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    title = Column(String(100), nullable=True)
    experience = Column(String(50), nullable=True)
    expected_salary = Column(String(50), nullable=True)
    salary_currency = Column(String(10), default="USD")
    bio = Column(Text, nullable=True)
    availability = Column(
        Enum(Availability, values_callable=enum_values, name="job_seeker_availability"),
        default=Availability.AVAILABLE,
        index=True,
    )
    available_from = Column(Date, nullable=True)

    # Media store references (URLs), never file contents
    cv_file_path = Column(String(500), nullable=True)
    certificates = Column(JSONList, default=list)

    user = relationship("User", back_populates="job_seeker_profile")

class EquipmentOwnerProfile(BaseModel):
    __tablename__ = "equipment_owners"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    company_name = Column(String(255), nullable=True)
    business_license = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    user = relationship("User", back_populates="equipment_owner_profile")
