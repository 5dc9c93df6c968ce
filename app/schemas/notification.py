from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

from app.models.notification import NotificationType


class NotificationDraft(BaseModel):
    owner_id: int
    title: str
    message: str
    type: NotificationType = NotificationType.INFO


class NotificationRead(BaseModel):
    id: int
    owner_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
