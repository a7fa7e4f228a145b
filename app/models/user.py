from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.models.types import enum_values
import enum

class UserType(str, enum.Enum):
    JOBSEEKER = "jobseeker"
    EQUIPMENT_OWNER = "equipment_owner"

class User(BaseModel):
    __tablename__ = "users"

    user_name = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    location = Column(String(100), nullable=True)  # free text, e.g. "Anna Nagar, Chennai"

    # Roles: all false / NULL until the one-time role selection
    user_type = Column(Enum(UserType, values_callable=enum_values, name="user_type"), nullable=True, index=True)
    is_freelancer = Column(Boolean, default=False, nullable=False)
    is_equipment_owner = Column(Boolean, default=False, nullable=False)
    roles_selected = Column(Boolean, default=False, nullable=False, index=True)

    reset_token = Column(String(6), nullable=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    job_seeker_profile = relationship(
        "JobSeekerProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    equipment_owner_profile = relationship(
        "EquipmentOwnerProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    equipment = relationship(
        "Equipment",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_both_roles(self) -> bool:
        return bool(self.is_freelancer and self.is_equipment_owner)
