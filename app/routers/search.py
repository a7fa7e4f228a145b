from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.schemas.search import (
    JobSeekerSearchRequest, CandidateResponse, CandidateSearchResponse,
    CandidateStats, CategoriesResponse, CategoryCount
)
from app.services import search as search_service
from app.services.locations import LocationIndex
from app.api.deps import get_location_index

router = APIRouter(prefix="/search", tags=["Candidate Search"])


@router.post("/jobseekers", response_model=CandidateSearchResponse)
async def search_job_seekers(
    criteria: JobSeekerSearchRequest,
    db: Session = Depends(get_db),
    index: LocationIndex = Depends(get_location_index),
):
    """Recruiter search over freelancers. `jobTitle` matches title and bio."""
    rows = search_service.search_job_seekers(
        db, index,
        job_title=criteria.job_title,
        location=criteria.location,
        experience=criteria.experience,
        availability=criteria.availability,
        limit=criteria.limit,
        offset=criteria.offset,
    )
    candidates = [search_service.to_candidate(user, profile) for user, profile in rows]
    return CandidateSearchResponse(count=len(candidates), candidates=candidates)


@router.get("/candidate/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(candidate_id: int, db: Session = Depends(get_db)):
    row = search_service.get_candidate(db, candidate_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return search_service.to_candidate(*row)


@router.get("/stats", response_model=CandidateStats)
async def candidate_stats(db: Session = Depends(get_db)):
    return CandidateStats(**search_service.candidate_stats(db))


@router.get("/categories", response_model=CategoriesResponse)
async def professional_categories(db: Session = Depends(get_db)):
    categories, total = search_service.professional_categories(db)
    return CategoriesResponse(
        categories=[CategoryCount(**c) for c in categories],
        total_professionals=total,
    )
