"""
services/profiles.py

Freelancer profile updates. Account fields (users) and profile fields
(job_seekers) are written in one transaction; the CV and certificate
references are reconciled against what is already stored.

Certificate policy:
    replace=False  an omitted or empty `existing` declaration keeps the stored
                   list, otherwise the declaration is the base list
    replace=True   the declaration (or nothing) is the base list
New references are appended in upload order and duplicates are dropped,
first occurrence wins, so repeating an update without new files is a no-op.
"""

import json
import logging
import re
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models.profile import JobSeekerProfile
from app.models.user import User
from app.schemas.user import USERNAME_PATTERN
from app.services.accounts import conflict_error, ensure_no_conflict, find_conflict
from app.utils.file_storage import MediaStore

logger = logging.getLogger(__name__)

MAX_NEW_CERTIFICATES = 5

ACCOUNT_FIELDS = ("first_name", "last_name", "user_name", "email", "phone", "location")
PROFILE_FIELDS = (
    "title", "experience", "expected_salary", "salary_currency",
    "bio", "availability", "available_from",
)


def dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def reconcile_certificates(
    stored: Optional[List[str]],
    declared: Optional[List[str]],
    new: Optional[List[str]],
    replace: bool = False,
) -> List[str]:
    if replace:
        base = declared or []
    else:
        base = declared if declared else (stored or [])
    return dedupe(list(base) + list(new or []))


def parse_url_list(raw: Optional[str], field_name: str) -> Optional[List[str]]:
    """
    Parse a JSON array of URLs sent as a multipart form field.

    None means the client did not send the field, which is not the same as "[]".
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{field_name}' must be a JSON array of URLs.",
        )
    if isinstance(parsed, str):
        parsed = [parsed]
    if not isinstance(parsed, list) or not all(isinstance(u, str) for u in parsed):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{field_name}' must be a JSON array of URLs.",
        )
    return [u.strip() for u in parsed if u.strip()]


def check_certificate_count(count: int):
    if count > MAX_NEW_CERTIFICATES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {MAX_NEW_CERTIFICATES} new certificates can be added per update.",
        )


def clean_account_fields(account: dict) -> dict:
    cleaned = {}
    for key in ACCOUNT_FIELDS:
        value = account.get(key)
        if value is None:
            continue
        value = value.strip()
        if key in ("first_name", "last_name", "user_name", "email") and not value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"'{key}' must not be empty.",
            )
        if key == "email":
            value = value.lower()
            if not re.match(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", value):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Valid email is required.")
        if key == "user_name" and not re.match(USERNAME_PATTERN, value):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username must be 3-30 letters, numbers or underscores.",
            )
        cleaned[key] = value or None
    return cleaned


def update_freelancer_profile(
    db: Session,
    user: User,
    account: dict,
    profile_fields: dict,
    new_cv: Optional[str] = None,
    new_certificates: Optional[List[str]] = None,
    existing_certificates: Optional[List[str]] = None,
    replace_certificates: bool = False,
) -> Tuple[JobSeekerProfile, bool]:
    """
    Apply a profile update. Returns (profile, created) where `created` is True
    when the job_seekers row did not exist before this call.

    `account` holds raw input: None leaves a field alone, a blank string clears
    phone or location. Uploads must already be stored: only their URLs come in here.
    """
    account = clean_account_fields(account)
    new_certificates = dedupe(new_certificates or [])
    check_certificate_count(len(new_certificates))

    ensure_no_conflict(db, account.get("email"), account.get("user_name"), exclude_id=user.id)

    try:
        with transaction(db):
            for key, value in account.items():
                setattr(user, key, value)

            profile = user.job_seeker_profile
            created = profile is None
            if created:
                profile = JobSeekerProfile(certificates=[])
                user.job_seeker_profile = profile

            for key in PROFILE_FIELDS:
                value = profile_fields.get(key)
                if value is None:
                    continue
                if isinstance(value, str):
                    value = value.strip() or None
                setattr(profile, key, value)

            if new_cv:
                profile.cv_file_path = new_cv

            profile.certificates = reconcile_certificates(
                profile.certificates,
                existing_certificates,
                new_certificates,
                replace=replace_certificates,
            )
    except IntegrityError:
        raise conflict_error(
            find_conflict(db, account.get("email"), account.get("user_name"), exclude_id=user.id)
            or "email"
        )

    db.refresh(user)
    db.refresh(profile)
    logger.info(
        "Freelancer profile %s: user_id=%s certificates=%d",
        "created" if created else "updated", user.id, len(profile.certificates),
    )
    return profile, created


async def remove_certificate(db: Session, store: MediaStore, user: User, url: str) -> JobSeekerProfile:
    """
    Drop one certificate reference and ask the media store to delete the file.
    The reference is removed even when the media store delete fails.
    """
    profile = user.job_seeker_profile
    if profile is None or url not in (profile.certificates or []):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Certificate not found in profile.")

    try:
        if not await store.delete(url):
            logger.warning("Media store did not delete certificate for user_id=%s", user.id)
    except Exception:
        logger.error("Media store delete failed for user_id=%s, removing reference anyway", user.id, exc_info=True)

    with transaction(db):
        profile.certificates = [c for c in profile.certificates if c != url]

    db.refresh(profile)
    return profile
