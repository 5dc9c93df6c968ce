"""
RBAC Dependencies.
The upstream auth provider forwards the authenticated profile id in a header;
these dependencies resolve it to a Profile and enforce role-based access.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database import get_db
from app.models.profile import APPROVER_ROLES, CATALOG_EDITOR_ROLES, Profile, ProfileRole

logger = logging.getLogger(__name__)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Profile:
    """
    Extracts and validates the current profile from the identity header.
    """
    raw_id: Optional[str] = request.headers.get(settings.user_id_header)

    if not raw_id:
        logger.warning("Authentication failed: Missing identity header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    try:
        profile_id = int(raw_id)
    except ValueError:
        logger.warning(f"Authentication failed: Malformed profile id {raw_id!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    profile = db.get(Profile, profile_id)
    if profile is None:
        logger.warning(f"Authentication failed: Profile {profile_id} not found in database")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not profile.is_active:
        logger.warning(f"Authentication failed: Profile {profile_id} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return profile


def require_role(allowed_roles: List[ProfileRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: Profile = Depends(require_role([ProfileRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: Profile = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker


def require_approver():
    """Shorthand for roles allowed to review submitted ratings."""
    return require_role(list(APPROVER_ROLES))


def require_catalog_editor():
    """Shorthand for roles allowed to change the skill catalog."""
    return require_role(list(CATALOG_EDITOR_ROLES))


def require_admin():
    """Shorthand for requiring admin roles only."""
    return require_role([ProfileRole.ADMIN])
