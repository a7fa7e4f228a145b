import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.database import get_db, transaction
from app.models.equipment import Equipment, EquipmentAvailability, ContactInquiry
from app.models.profile import EquipmentOwnerProfile
from app.models.user import User
from app.schemas.base import MessageResponse
from app.schemas.equipment import (
    EquipmentCreate, EquipmentUpdate, EquipmentResponse, EquipmentListResponse,
    EquipmentStats, EquipmentStatsResponse, LocationsResponse,
    OwnerProfileUpdate, OwnerDashboardResponse,
    InquiryCreate, InquiryResponse, InquiryStatusUpdate
)
from app.schemas.profile import EquipmentOwnerProfileResponse
from app.schemas.user import UserResponse
from app.services import search as search_service
from app.services.contact import submit_equipment_inquiry, advance_inquiry
from app.services.email_service import email_service
from app.services.locations import LocationIndex
from app.api.deps import require_equipment_owner, get_location_index
from app.utils.file_storage import MediaStore, get_media_store, discard_media

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/equipment", tags=["Equipment"])


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _owned_equipment(db: Session, equipment_id: int, owner: User) -> Equipment:
    """Fetch a listing, active or not, that belongs to `owner`."""
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    if equipment.user_id != owner.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only manage your own equipment")
    return equipment


def _owner_contact(owner: User) -> dict:
    return {
        "contact_person": f"{owner.first_name} {owner.last_name}".strip(),
        "contact_number": owner.phone,
        "contact_email": owner.email,
    }


def queue_inquiry_email(background_tasks: BackgroundTasks, inquiry: ContactInquiry, equipment: Equipment):
    background_tasks.add_task(
        email_service.send_equipment_inquiry,
        equipment.contact_email,
        equipment.contact_person,
        equipment.equipment_name,
        inquiry.requester_name,
        inquiry.requester_email,
        inquiry.requester_phone,
        inquiry.message,
    )


# ─── PUBLIC: search & browse (static paths before /{equipment_id}) ────────────

@router.get("/search", response_model=EquipmentListResponse)
async def search_equipment(
    db: Session = Depends(get_db),
    index: LocationIndex = Depends(get_location_index),
    search: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    availability: Optional[EquipmentAvailability] = Query(None),
    equipment_type: Optional[str] = Query(None, alias="equipmentType"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Active listings only. `location` is expanded through the location hierarchy."""
    results = search_service.search_equipment(
        db, index,
        search=search,
        location=location,
        availability=availability,
        equipment_type=equipment_type,
        limit=limit,
        offset=offset,
    )
    return EquipmentListResponse(
        count=len(results),
        equipment=[EquipmentResponse.model_validate(e) for e in results],
    )


@router.get("/locations/all", response_model=LocationsResponse)
async def list_locations(db: Session = Depends(get_db)):
    return LocationsResponse(locations=search_service.equipment_locations(db))


@router.get("/stats/summary", response_model=EquipmentStatsResponse)
async def equipment_stats(db: Session = Depends(get_db)):
    return EquipmentStatsResponse(statistics=EquipmentStats(**search_service.equipment_stats(db)))


@router.get("/details/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment_details(equipment_id: int, db: Session = Depends(get_db)):
    equipment = search_service.get_active_equipment(db, equipment_id)
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return equipment


@router.post("/contact", response_model=InquiryResponse, status_code=status.HTTP_201_CREATED)
async def contact_equipment_owner(
    payload: InquiryCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    inquiry, equipment = submit_equipment_inquiry(db, payload)
    queue_inquiry_email(background_tasks, inquiry, equipment)
    return inquiry


# ─── OWNER: profile ───────────────────────────────────────────────────────────

@router.get("/profile", response_model=OwnerDashboardResponse)
async def get_owner_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    """The owner's account, company profile and every listing, inactive ones included."""
    equipment = (
        db.query(Equipment)
        .filter(Equipment.user_id == current_user.id)
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .all()
    )
    profile = current_user.equipment_owner_profile
    return OwnerDashboardResponse(
        user=UserResponse.model_validate(current_user),
        profile=EquipmentOwnerProfileResponse.model_validate(profile) if profile else None,
        equipment=[EquipmentResponse.model_validate(e) for e in equipment],
    )


@router.put("/profile", response_model=OwnerDashboardResponse)
async def update_owner_profile(
    changes: OwnerProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    data = changes.model_dump(exclude_unset=True)

    with transaction(db):
        for field in ("first_name", "last_name"):
            if data.get(field) and data[field].strip():
                setattr(current_user, field, data[field].strip())
        for field in ("phone", "location"):
            if field in data:
                setattr(current_user, field, (data[field] or "").strip() or None)

        profile = current_user.equipment_owner_profile
        if profile is None:
            profile = EquipmentOwnerProfile()
            current_user.equipment_owner_profile = profile
        for field in ("company_name", "business_license", "description"):
            if field in data:
                setattr(profile, field, (data[field] or "").strip() or None)

    db.refresh(current_user)
    return await get_owner_profile(db=db, current_user=current_user)


# ─── OWNER: listings ──────────────────────────────────────────────────────────

@router.post("/add", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def add_equipment(
    payload: EquipmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    """Create a listing. Contact fields left out are copied from the owner and stay fixed."""
    contact = _owner_contact(current_user)
    equipment = Equipment(
        user_id=current_user.id,
        equipment_name=payload.equipment_name,
        equipment_type=payload.equipment_type,
        location=(payload.location or "").strip() or current_user.location,
        contact_person=(payload.contact_person or "").strip() or contact["contact_person"],
        contact_number=(payload.contact_number or "").strip() or contact["contact_number"],
        contact_email=payload.contact_email or contact["contact_email"],
        availability=payload.availability,
        equipment_images=payload.equipment_images,
        is_active=True,
    )

    with transaction(db):
        db.add(equipment)
    db.refresh(equipment)

    background_tasks.add_task(
        email_service.send_equipment_listed,
        current_user.email, current_user.first_name, equipment.equipment_name,
    )
    logger.info("Equipment %s listed by user_id=%s", equipment.id, current_user.id)
    return equipment


@router.get("/manage/{equipment_id}", response_model=EquipmentResponse)
async def get_managed_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    """Owner view of a single listing, reachable even after a soft delete."""
    return _owned_equipment(db, equipment_id, current_user)


@router.patch("/inquiries/{inquiry_id}", response_model=InquiryResponse)
async def update_inquiry_status(
    inquiry_id: int,
    update: InquiryStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    inquiry = db.query(ContactInquiry).filter(ContactInquiry.id == inquiry_id).first()
    if not inquiry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inquiry not found")
    _owned_equipment(db, inquiry.equipment_id, current_user)
    return advance_inquiry(db, inquiry, update.status)


@router.put("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: int,
    changes: EquipmentUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    current_user: User = Depends(require_equipment_owner),
):
    """Partial update. Sending `equipmentImages` replaces the image list."""
    equipment = _owned_equipment(db, equipment_id, current_user)
    data = changes.model_dump(exclude_unset=True)

    removed_images = []
    with transaction(db):
        for field, value in data.items():
            if field == "equipment_images":
                if value is None:
                    continue
                removed_images = [url for url in equipment.equipment_images if url not in value]
                equipment.equipment_images = list(dict.fromkeys(value))
            elif field in ("equipment_name", "equipment_type", "contact_person", "contact_email", "availability"):
                # Required columns: an explicit null is ignored
                if value is not None:
                    setattr(equipment, field, value.strip() if isinstance(value, str) else value)
            elif field in ("location", "contact_number"):
                setattr(equipment, field, (value or "").strip() or None)
            else:
                setattr(equipment, field, value)

    db.refresh(equipment)
    if removed_images:
        background_tasks.add_task(discard_media, store, removed_images)
    return equipment


@router.post("/{equipment_id}/refresh-contact", response_model=EquipmentResponse)
async def refresh_equipment_contact(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    """Re-copy contact details from the owner's current account."""
    equipment = _owned_equipment(db, equipment_id, current_user)
    with transaction(db):
        for field, value in _owner_contact(current_user).items():
            setattr(equipment, field, value)
    db.refresh(equipment)
    return equipment


@router.delete("/{equipment_id}", response_model=MessageResponse)
async def deactivate_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    """Soft delete: hidden from search, still visible to the owner."""
    equipment = _owned_equipment(db, equipment_id, current_user)
    with transaction(db):
        equipment.is_active = False
    return MessageResponse(msg="Equipment removed from listings")


@router.delete("/{equipment_id}/permanent", response_model=MessageResponse)
async def delete_equipment_permanently(
    equipment_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    current_user: User = Depends(require_equipment_owner),
):
    equipment = _owned_equipment(db, equipment_id, current_user)
    images = list(equipment.equipment_images or [])
    with transaction(db):
        db.delete(equipment)

    if images:
        background_tasks.add_task(discard_media, store, images)
    logger.info("Equipment %s deleted permanently by user_id=%s", equipment_id, current_user.id)
    return MessageResponse(msg="Equipment deleted permanently")


@router.get("/{equipment_id}/inquiries", response_model=List[InquiryResponse])
async def list_equipment_inquiries(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_equipment_owner),
):
    equipment = _owned_equipment(db, equipment_id, current_user)
    return (
        db.query(ContactInquiry)
        .filter(ContactInquiry.equipment_id == equipment.id)
        .order_by(ContactInquiry.created_at.desc(), ContactInquiry.id.desc())
        .all()
    )
