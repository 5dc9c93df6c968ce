from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.notification import Notification, NotificationType


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        owner_id: int,
        title: str,
        message: str,
        type: str = NotificationType.INFO.value,
    ) -> Notification:
        """
        Adds a notification to the caller's transaction. Never commits: the
        notification must land together with the change that caused it.
        """
        notification = Notification(
            owner_id=owner_id,
            title=title,
            message=message,
            type=type,
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def list_for_owner(db: Session, owner_id: int, unread_only: bool = False) -> List[Notification]:
        query = db.query(Notification).filter(Notification.owner_id == owner_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(settings.notifications_page_size)
            .all()
        )

    @staticmethod
    def mark_read(db: Session, owner_id: int, notification_id: int) -> Notification:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.owner_id == owner_id
        ).first()
        if not notification:
            raise NotFoundError("Notification", notification_id)

        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, owner_id: int) -> int:
        updated = db.query(Notification).filter(
            Notification.owner_id == owner_id,
            Notification.is_read == False  # noqa: E712
        ).update({Notification.is_read: True}, synchronize_session=False)
        db.commit()
        return updated
