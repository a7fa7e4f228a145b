from sqlalchemy import Column, String, Integer, Boolean, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.models.types import JSONList, enum_values
import enum

class EquipmentAvailability(str, enum.Enum):
    AVAILABLE = "available"
    ON_HIRE = "on-hire"

class InquiryStatus(str, enum.Enum):
    PENDING = "pending"
    RESPONDED = "responded"
    RESOLVED = "resolved"

# Allowed forward moves for the owner; inquirers can only create
INQUIRY_TRANSITIONS = {
    InquiryStatus.PENDING: {InquiryStatus.RESPONDED, InquiryStatus.RESOLVED},
    InquiryStatus.RESPONDED: {InquiryStatus.RESOLVED},
    InquiryStatus.RESOLVED: set(),
}

class Equipment(BaseModel):
    __tablename__ = "equipment"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    equipment_name = Column(String(255), nullable=False)
    equipment_type = Column(String(100), nullable=False, index=True)
    location = Column(String(255), nullable=True, index=True)

    # Copied from the owner when the listing is created
    contact_person = Column(String(100), nullable=False)
    contact_number = Column(String(20), nullable=True)
    contact_email = Column(String(255), nullable=False)

    availability = Column(
        Enum(EquipmentAvailability, values_callable=enum_values, name="equipment_availability"),
        default=EquipmentAvailability.AVAILABLE,
        nullable=False,
        index=True,
    )
    equipment_images = Column(JSONList, default=list)

    # Soft delete: inactive rows are hidden from search but visible to the owner
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    owner = relationship("User", back_populates="equipment")
    inquiries = relationship(
        "ContactInquiry",
        back_populates="equipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

class ContactInquiry(BaseModel):
    __tablename__ = "contact_inquiries"

    equipment_id = Column(Integer, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_name = Column(String(255), nullable=False)
    requester_email = Column(String(255), nullable=False, index=True)
    requester_phone = Column(String(20), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(
        Enum(InquiryStatus, values_callable=enum_values, name="inquiry_status"),
        default=InquiryStatus.PENDING,
        nullable=False,
    )

    equipment = relationship("Equipment", back_populates="inquiries")
