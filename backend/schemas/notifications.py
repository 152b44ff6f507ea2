from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from models.notifications import NotificationType

class NotificationCreate(BaseModel):
    user_id: int
    type: NotificationType
    title: str
    message: str
    target_route: Optional[str] = None

class Notification(NotificationCreate):
    id: int
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class UnreadCount(BaseModel):
    count: int
