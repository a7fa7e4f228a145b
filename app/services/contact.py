"""
services/contact.py

Inbound contact: rental inquiries on equipment listings and recruiter
messages to freelancers. Inquiries are stored, then the notification email
is handed back to the router to queue.
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models.equipment import ContactInquiry, InquiryStatus, INQUIRY_TRANSITIONS
from app.schemas.equipment import InquiryCreate
from app.services.search import get_active_equipment, get_candidate

logger = logging.getLogger(__name__)


def submit_equipment_inquiry(db: Session, payload: InquiryCreate):
    """Store an inquiry for an active listing. Returns (inquiry, equipment)."""
    equipment = get_active_equipment(db, payload.equipment_id)
    if equipment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")

    inquiry = ContactInquiry(
        equipment_id=equipment.id,
        requester_name=payload.requester_name.strip(),
        requester_email=payload.requester_email.lower(),
        requester_phone=(payload.requester_phone or "").strip() or None,
        message=payload.message.strip(),
        status=InquiryStatus.PENDING,
    )
    with transaction(db):
        db.add(inquiry)

    db.refresh(inquiry)
    logger.info("Inquiry %s received for equipment_id=%s", inquiry.id, equipment.id)
    return inquiry, equipment


def advance_inquiry(db: Session, inquiry: ContactInquiry, new_status: InquiryStatus) -> ContactInquiry:
    """Move an inquiry forward: pending -> responded -> resolved."""
    if new_status == inquiry.status:
        return inquiry
    if new_status not in INQUIRY_TRANSITIONS[inquiry.status]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot move inquiry from {inquiry.status.value} to {new_status.value}",
        )
    with transaction(db):
        inquiry.status = new_status
    db.refresh(inquiry)
    return inquiry


def find_freelancer(db: Session, freelancer_id: int):
    row = get_candidate(db, freelancer_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Freelancer not found")
    return row
