from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models.profile import Profile
from app.routers.auth_deps import get_current_user
from app.schemas.notification import NotificationRead
from app.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/", response_model=List[NotificationRead])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return NotificationService.list_for_owner(db, current_user.id, unread_only)

@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    return NotificationService.mark_read(db, current_user.id, notification_id)

@router.post("/mark-all-read")
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user)
):
    updated = NotificationService.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}
