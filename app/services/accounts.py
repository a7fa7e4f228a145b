"""
services/accounts.py

Two-phase signup: an account is created with no role, then the user picks
their role(s) exactly once. Role selection writes the flags and creates the
matching empty profile rows in a single transaction.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import transaction
from app.models.profile import Availability, EquipmentOwnerProfile, JobSeekerProfile
from app.models.user import User, UserType
from app.schemas.user import RoleSelection, UserCreate
from app.utils.auth import get_password_hash

logger = logging.getLogger(__name__)


def find_conflict(
    db: Session,
    email: Optional[str] = None,
    user_name: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> Optional[str]:
    """Return "email" or "userName" if another account already uses it."""
    conditions = []
    if email:
        conditions.append(User.email == email.strip().lower())
    if user_name:
        conditions.append(func.lower(User.user_name) == user_name.strip().lower())
    if not conditions:
        return None

    query = db.query(User).filter(or_(*conditions))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)

    existing = query.first()
    if existing is None:
        return None
    if email and existing.email == email.strip().lower():
        return "email"
    return "userName"


def conflict_error(field: str) -> HTTPException:
    label = "email" if field == "email" else "username"
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"msg": f"User with this {label} already exists", "conflictField": field},
    )


def ensure_no_conflict(db: Session, email=None, user_name=None, exclude_id=None):
    conflict = find_conflict(db, email, user_name, exclude_id)
    if conflict:
        raise conflict_error(conflict)


def create_account(db: Session, data: UserCreate) -> User:
    ensure_no_conflict(db, data.email, data.user_name)

    user = User(
        user_name=data.user_name.strip(),
        email=data.email,
        password_hash=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        location=data.location,
        user_type=None,
        is_freelancer=False,
        is_equipment_owner=False,
        roles_selected=False,
    )

    try:
        with transaction(db):
            db.add(user)
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email/username
        raise conflict_error(find_conflict(db, data.email, data.user_name) or "email")

    db.refresh(user)
    logger.info("Account created: user_id=%s", user.id)
    return user


def resolve_user_type(
    is_freelancer: bool,
    is_equipment_owner: bool,
    primary_role: Optional[str] = None,
) -> UserType:
    """
    Derive the display discriminator from the selected roles.

    One role maps to itself. With both roles the caller's primary role wins,
    defaulting to jobseeker.
    """
    if is_freelancer and is_equipment_owner:
        if primary_role is None:
            return UserType.JOBSEEKER
        try:
            return UserType(primary_role)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="primaryRole must be 'jobseeker' or 'equipment_owner'",
            )
    if is_freelancer:
        return UserType.JOBSEEKER
    if is_equipment_owner:
        return UserType.EQUIPMENT_OWNER
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Select at least one role: freelancer or equipment owner",
    )


def select_roles(db: Session, user_id: int, selection: RoleSelection) -> User:
    """One-time transition NO_ROLE -> ROLE_SELECTED. Repeat calls are errors."""
    user_type = resolve_user_type(
        selection.is_freelancer, selection.is_equipment_owner, selection.primary_role
    )

    with transaction(db):
        user = (
            db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if user.roles_selected:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Roles have already been selected for this account",
            )

        user.is_freelancer = selection.is_freelancer
        user.is_equipment_owner = selection.is_equipment_owner
        user.user_type = user_type
        user.roles_selected = True

        if selection.is_freelancer and user.job_seeker_profile is None:
            user.job_seeker_profile = JobSeekerProfile(
                availability=Availability.AVAILABLE,
                certificates=[],
            )
        if selection.is_equipment_owner and user.equipment_owner_profile is None:
            user.equipment_owner_profile = EquipmentOwnerProfile()

    db.refresh(user)
    logger.info(
        "Roles selected: user_id=%s freelancer=%s equipment_owner=%s type=%s",
        user.id, user.is_freelancer, user.is_equipment_owner, user.user_type.value,
    )
    return user
