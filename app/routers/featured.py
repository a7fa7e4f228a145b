from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.core.database import get_db
from app.models.equipment import EquipmentAvailability
from app.models.profile import Availability
from app.schemas.equipment import EquipmentListResponse, EquipmentResponse
from app.schemas.search import CandidateResponse, CandidateSearchResponse
from app.services import search as search_service
from app.services.locations import LocationIndex
from app.api.deps import get_location_index

router = APIRouter(prefix="/featured", tags=["Featured"])


# ─── Freelancers ──────────────────────────────────────────────────────────────

@router.get("/freelancers", response_model=CandidateSearchResponse)
async def featured_freelancers(
    db: Session = Depends(get_db),
    limit: int = Query(6, ge=1, le=50),
):
    """Available freelancers, most recently updated profiles first."""
    rows = search_service.featured_freelancers(db, limit=limit)
    candidates = [search_service.to_candidate(user, profile) for user, profile in rows]
    return CandidateSearchResponse(count=len(candidates), candidates=candidates)


@router.get("/freelancers/all", response_model=CandidateSearchResponse)
async def all_freelancers(
    db: Session = Depends(get_db),
    index: LocationIndex = Depends(get_location_index),
    search: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    experience: Optional[str] = Query(None),
    availability: Optional[Availability] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Browse every freelancer page by page, with the recruiter search filters."""
    rows = search_service.search_job_seekers(
        db, index,
        job_title=search,
        location=location,
        experience=experience,
        availability=availability,
        limit=limit,
        offset=offset,
    )
    candidates = [search_service.to_candidate(user, profile) for user, profile in rows]
    return CandidateSearchResponse(count=len(candidates), candidates=candidates)


@router.get("/freelancers/{user_id}", response_model=CandidateResponse)
async def featured_freelancer(user_id: int, db: Session = Depends(get_db)):
    row = search_service.get_candidate(db, user_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Freelancer not found")
    return search_service.to_candidate(*row)


# ─── Equipment ────────────────────────────────────────────────────────────────

@router.get("/equipment", response_model=EquipmentListResponse)
async def featured_equipment(
    db: Session = Depends(get_db),
    limit: int = Query(6, ge=1, le=50),
):
    """Newest active listings that are available for hire."""
    equipment = search_service.featured_equipment(db, limit=limit)
    return EquipmentListResponse(
        count=len(equipment),
        equipment=[EquipmentResponse.model_validate(e) for e in equipment],
    )


@router.get("/equipment/all", response_model=EquipmentListResponse)
async def all_equipment(
    db: Session = Depends(get_db),
    index: LocationIndex = Depends(get_location_index),
    search: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    availability: Optional[EquipmentAvailability] = Query(None),
    equipment_type: Optional[str] = Query(None, alias="equipmentType"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    equipment = search_service.search_equipment(
        db, index,
        search=search,
        location=location,
        availability=availability,
        equipment_type=equipment_type,
        limit=limit,
        offset=offset,
    )
    return EquipmentListResponse(
        count=len(equipment),
        equipment=[EquipmentResponse.model_validate(e) for e in equipment],
    )


@router.get("/equipment/{equipment_id}", response_model=EquipmentResponse)
async def featured_equipment_details(equipment_id: int, db: Session = Depends(get_db)):
    equipment = search_service.get_active_equipment(db, equipment_id)
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return equipment
