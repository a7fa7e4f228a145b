import logging
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.schemas.base import MessageResponse
from app.schemas.equipment import InquiryCreate, InquiryResponse
from app.schemas.search import FreelancerContactRequest
from app.services.contact import submit_equipment_inquiry, find_freelancer
from app.services.email_service import email_service
from app.routers.equipment import queue_inquiry_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("/freelancer", response_model=MessageResponse)
async def contact_freelancer(
    payload: FreelancerContactRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Recruiter message to a freelancer, delivered by email."""
    user, _profile = find_freelancer(db, payload.freelancer_id)

    background_tasks.add_task(
        email_service.send_freelancer_contact,
        user.email,
        user.first_name,
        payload.recruiter_name.strip(),
        payload.recruiter_email.lower(),
        (payload.recruiter_phone or "").strip() or None,
        (payload.company or "").strip() or None,
        payload.message.strip(),
    )
    logger.info("Recruiter contact queued for freelancer user_id=%s", user.id)
    return MessageResponse(msg=f"Your message has been sent to {user.first_name}.")


@router.post("/equipment", response_model=InquiryResponse, status_code=status.HTTP_201_CREATED)
async def contact_equipment(
    payload: InquiryCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    inquiry, equipment = submit_equipment_inquiry(db, payload)
    queue_inquiry_email(background_tasks, inquiry, equipment)
    return inquiry
