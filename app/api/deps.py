from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.user import User
from app.services.locations import LocationIndex
from app.utils.auth import decode_token
from typing import Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login/token", auto_error=False)

async def get_current_user(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme)
) -> Optional[User]:
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        return None

    return db.query(User).filter(User.id == int(user_id)).first()

async def get_current_active_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    # Covers missing, invalid and expired tokens, and deleted accounts
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user

def require_role(role: str):
    """Dependency factory: `role` is "freelancer" or "equipment_owner"."""
    flag = {"freelancer": "is_freelancer", "equipment_owner": "is_equipment_owner"}[role]

    async def role_checker(
        current_user: User = Depends(get_current_active_user)
    ):
        if not getattr(current_user, flag):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires the {role.replace('_', ' ')} role"
            )
        return current_user
    return role_checker

require_freelancer = require_role("freelancer")
require_equipment_owner = require_role("equipment_owner")

def get_location_index(request: Request) -> LocationIndex:
    """The location hierarchy loaded at startup."""
    return request.app.state.location_index
