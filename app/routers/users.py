import logging
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.database import get_db, transaction
from app.models.user import User, UserType
from app.schemas.base import MessageResponse
from app.schemas.user import (
    UserCreate, UserUpdate, RoleSelection, AuthResponse, RoleSelectionResponse,
    UserResponse, UserListResponse, UserStats
)
from app.services.accounts import create_account, select_roles
from app.services.email_service import email_service
from app.api.deps import get_current_active_user
from app.utils.auth import create_user_token, get_password_hash

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _require_self(user_id: int, current_user: User):
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own account",
        )


# ─── Signup & role selection ──────────────────────────────────────────────────

@router.post("/create", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Step 1 of signup: create the account with no role."""
    user = create_account(db, user_data)
    background_tasks.add_task(email_service.send_welcome, user.email, user.first_name)

    return AuthResponse(
        msg="Account created successfully! Please select your role to continue.",
        token=create_user_token(user),
        user=UserResponse.model_validate(user),
        requires_role_selection=True,
    )


@router.post("/select-roles", response_model=RoleSelectionResponse)
async def select_user_roles(
    selection: RoleSelection,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Step 2 of signup: pick freelancer and/or equipment owner, once."""
    user = select_roles(db, current_user.id, selection)
    background_tasks.add_task(
        email_service.send_role_selection,
        user.email, user.first_name, user.is_freelancer, user.is_equipment_owner,
    )

    return RoleSelectionResponse(
        msg="Roles selected successfully",
        token=create_user_token(user),
        user=UserResponse.model_validate(user),
        user_type=user.user_type,
    )


# ─── Reads ────────────────────────────────────────────────────────────────────

@router.get("/", response_model=UserListResponse)
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = db.query(User)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=UserStats)
async def user_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return UserStats(
        total_users=db.query(User).count(),
        freelancers=db.query(User).filter(User.is_freelancer.is_(True)).count(),
        equipment_owners=db.query(User).filter(User.is_equipment_owner.is_(True)).count(),
        both_roles=db.query(User).filter(
            User.is_freelancer.is_(True), User.is_equipment_owner.is_(True)
        ).count(),
        pending_role_selection=db.query(User).filter(User.roles_selected.is_(False)).count(),
    )


@router.get("/search", response_model=List[UserResponse])
async def search_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    q: Optional[str] = Query(None, min_length=1),
    user_type: Optional[UserType] = Query(None, alias="userType"),
    limit: int = Query(20, ge=1, le=100),
):
    query = db.query(User)
    if q and q.strip():
        term = q.strip()
        query = query.filter(or_(
            User.user_name.icontains(term, autoescape=True),
            User.first_name.icontains(term, autoescape=True),
            User.last_name.icontains(term, autoescape=True),
            User.email.icontains(term, autoescape=True),
        ))
    if user_type:
        query = query.filter(User.user_type == user_type)
    return query.order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
):
    return current_user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ─── Self-service writes ──────────────────────────────────────────────────────

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    changes: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    _require_self(user_id, current_user)

    with transaction(db):
        for field in ("first_name", "last_name", "phone", "location"):
            value = getattr(changes, field)
            if value is not None:
                setattr(current_user, field, value.strip() or None)
        if changes.password:
            current_user.password_hash = get_password_hash(changes.password)

    db.refresh(current_user)
    return current_user


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Delete the caller's account. Profiles, equipment and inquiries go with it."""
    _require_self(user_id, current_user)

    with transaction(db):
        db.delete(current_user)

    logger.info("Account deleted: user_id=%s", user_id)
    return MessageResponse(msg="Account deleted successfully")
