"""
services/search.py

Filtered queries over equipment and job seekers.

Both searches keep only live rows, narrow by optional text, location and
equality filters, and sort newest first. When a text query is present a
weighted hit counter (name/title hits weigh more than type/bio hits) is put
in front of the sort. It reorders results and never filters them.
"""

import re
from typing import List, Optional, Tuple

from sqlalchemy import Integer, case, distinct, func, literal, or_
from sqlalchemy.orm import Session

from app.models.equipment import Equipment, EquipmentAvailability
from app.models.profile import Availability, JobSeekerProfile
from app.models.user import User
from app.schemas.search import CandidateResponse
from app.services.locations import LocationIndex, expand_location, location_clause


def _relevance(term: str, weighted_columns):
    score = literal(0)
    for column, weight in weighted_columns:
        score = score + case((column.icontains(term, autoescape=True), weight), else_=0).cast(Integer)
    return score


# ─── Equipment ────────────────────────────────────────────────────────────────

def search_equipment(
    db: Session,
    index: LocationIndex,
    search: Optional[str] = None,
    location: Optional[str] = None,
    availability: Optional[EquipmentAvailability] = None,
    equipment_type: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Equipment]:
    query = db.query(Equipment).filter(Equipment.is_active.is_(True))

    term = (search or "").strip()
    if term:
        query = query.filter(or_(
            Equipment.equipment_name.icontains(term, autoescape=True),
            Equipment.equipment_type.icontains(term, autoescape=True),
        ))

    clause = location_clause(Equipment.location, expand_location(index, location))
    if clause is not None:
        query = query.filter(clause)

    if availability:
        query = query.filter(Equipment.availability == availability)
    if equipment_type and equipment_type.strip():
        query = query.filter(func.lower(Equipment.equipment_type) == equipment_type.strip().lower())

    ordering = [Equipment.created_at.desc(), Equipment.id.desc()]
    if term:
        relevance = _relevance(term, [(Equipment.equipment_name, 3), (Equipment.equipment_type, 2)])
        ordering.insert(0, relevance.desc())
    query = query.order_by(*ordering)

    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def get_active_equipment(db: Session, equipment_id: int) -> Optional[Equipment]:
    return (
        db.query(Equipment)
        .filter(Equipment.id == equipment_id, Equipment.is_active.is_(True))
        .first()
    )


def equipment_locations(db: Session) -> List[str]:
    rows = (
        db.query(distinct(Equipment.location))
        .filter(Equipment.is_active.is_(True), Equipment.location.isnot(None), Equipment.location != "")
        .order_by(Equipment.location)
        .all()
    )
    return [row[0] for row in rows]


def equipment_stats(db: Session) -> dict:
    active = db.query(Equipment).filter(Equipment.is_active.is_(True))
    return {
        "total": active.count(),
        "available": active.filter(Equipment.availability == EquipmentAvailability.AVAILABLE).count(),
        "on_hire": active.filter(Equipment.availability == EquipmentAvailability.ON_HIRE).count(),
        "locations": active.with_entities(func.count(distinct(Equipment.location))).scalar() or 0,
        "types": active.with_entities(func.count(distinct(Equipment.equipment_type))).scalar() or 0,
    }


def featured_equipment(db: Session, limit: int = 6) -> List[Equipment]:
    return (
        db.query(Equipment)
        .filter(Equipment.is_active.is_(True), Equipment.availability == EquipmentAvailability.AVAILABLE)
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .limit(limit)
        .all()
    )


# ─── Job seekers ──────────────────────────────────────────────────────────────

def _candidates_query(db: Session):
    return (
        db.query(User, JobSeekerProfile)
        .join(JobSeekerProfile, JobSeekerProfile.user_id == User.id)
        .filter(User.is_freelancer.is_(True))
    )


def to_candidate(user: User, profile: JobSeekerProfile) -> CandidateResponse:
    return CandidateResponse(
        user_id=user.id,
        user_name=user.user_name,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        phone=user.phone,
        location=user.location,
        title=profile.title,
        experience=profile.experience,
        expected_salary=profile.expected_salary,
        salary_currency=profile.salary_currency,
        bio=profile.bio,
        availability=profile.availability,
        available_from=profile.available_from,
        cv_file_path=profile.cv_file_path,
        certificates=profile.certificates or [],
        updated_at=profile.updated_at,
    )


def search_job_seekers(
    db: Session,
    index: LocationIndex,
    job_title: Optional[str] = None,
    location: Optional[str] = None,
    experience: Optional[str] = None,
    availability: Optional[Availability] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Tuple[User, JobSeekerProfile]]:
    query = _candidates_query(db)

    term = (job_title or "").strip()
    if term:
        query = query.filter(or_(
            JobSeekerProfile.title.icontains(term, autoescape=True),
            JobSeekerProfile.bio.icontains(term, autoescape=True),
        ))

    clause = location_clause(User.location, expand_location(index, location))
    if clause is not None:
        query = query.filter(clause)

    if experience and experience.strip():
        query = query.filter(JobSeekerProfile.experience == experience.strip())
    if availability:
        query = query.filter(JobSeekerProfile.availability == availability)

    ordering = [User.created_at.desc(), User.id.desc()]
    if term:
        relevance = _relevance(term, [(JobSeekerProfile.title, 3), (JobSeekerProfile.bio, 2)])
        ordering.insert(0, relevance.desc())

    return query.order_by(*ordering).offset(offset).limit(limit).all()


def get_candidate(db: Session, user_id: int) -> Optional[Tuple[User, JobSeekerProfile]]:
    return _candidates_query(db).filter(User.id == user_id).first()


def candidate_stats(db: Session) -> dict:
    query = _candidates_query(db)
    return {
        "total_candidates": query.count(),
        "available_candidates": query.filter(JobSeekerProfile.availability == Availability.AVAILABLE).count(),
        "with_cv": query.filter(JobSeekerProfile.cv_file_path.isnot(None), JobSeekerProfile.cv_file_path != "").count(),
    }


def featured_freelancers(db: Session, limit: int = 6) -> List[Tuple[User, JobSeekerProfile]]:
    return (
        _candidates_query(db)
        .filter(JobSeekerProfile.availability == Availability.AVAILABLE)
        .order_by(JobSeekerProfile.updated_at.desc(), User.id.desc())
        .limit(limit)
        .all()
    )


# ─── Professional categories ──────────────────────────────────────────────────

# Checked in order; a profile counts towards the first category it matches
PROFESSIONAL_CATEGORIES = [
    ("Frontend Developer", "Code", ["frontend", "front-end", "front end", "react", "vue", "angular", "javascript", "html", "css", "ui developer", "web developer"]),
    ("Backend Developer", "Database", ["backend", "back-end", "back end", "node", "nodejs", "python", "java", "php", "api", "server", "database"]),
    ("Full Stack Developer", "Layers", ["fullstack", "full-stack", "full stack", "mern", "mean", "lamp", "stack"]),
    ("Data Engineer", "Database", ["data engineer", "data engineering", "etl", "data pipeline", "big data"]),
    ("Data Analyst", "BarChart", ["data analyst", "data analysis", "analyst", "business analyst", "reporting"]),
    ("Data Scientist", "TrendingUp", ["data scientist", "data science", "machine learning", "ml", "ai", "artificial intelligence"]),
    ("DevOps Engineer", "Settings", ["devops", "dev ops", "docker", "kubernetes", "aws", "azure", "jenkins", "ci/cd"]),
    ("Cloud Engineer", "Settings", ["cloud", "aws", "azure", "gcp", "google cloud", "cloud architect"]),
    ("Mobile Developer", "Smartphone", ["mobile", "ios", "android", "react native", "flutter", "app developer"]),
    ("QA Engineer", "CheckCircle", ["qa", "quality assurance", "testing", "test", "automation", "tester"]),
    ("UI/UX Designer", "Palette", ["ui", "ux", "designer", "design", "figma", "user experience", "user interface"]),
    ("Product Manager", "Users", ["product manager", "product management", "pm", "product owner", "scrum master"]),
    ("Software Engineer", "Code", ["software engineer", "software developer", "programmer", "coding", "engineer"]),
]
OTHERS = ("Others", "User")

_CATEGORY_PATTERNS = [
    (name, icon, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")\b"))
    for name, icon, keywords in PROFESSIONAL_CATEGORIES
]


def categorize(texts: List[str]) -> List[dict]:
    """
    Bucket free text (title + bio) into professional categories.

    Keywords match on word boundaries so short ones ("ai", "pm") do not fire
    inside other words. Empty categories are dropped; Others always sorts last.
    """
    counts = {name: 0 for name, _, _ in _CATEGORY_PATTERNS}
    counts[OTHERS[0]] = 0
    icons = {name: icon for name, icon, _ in _CATEGORY_PATTERNS}
    icons[OTHERS[0]] = OTHERS[1]

    for text in texts:
        lowered = (text or "").lower()
        for name, _, pattern in _CATEGORY_PATTERNS:
            if pattern.search(lowered):
                counts[name] += 1
                break
        else:
            counts[OTHERS[0]] += 1

    categories = [
        {"name": name, "count": count, "icon": icons[name]}
        for name, count in counts.items()
        if count > 0
    ]
    categories.sort(key=lambda c: (c["name"] == OTHERS[0], -c["count"]))
    return categories


def professional_categories(db: Session) -> Tuple[List[dict], int]:
    rows = _candidates_query(db).with_entities(JobSeekerProfile.title, JobSeekerProfile.bio).all()
    texts = [f"{title or ''} {bio or ''}" for title, bio in rows]
    return categorize(texts), len(texts)
