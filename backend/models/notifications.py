import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from database import Base
from utils.clock import now


class NotificationType(str, enum.Enum):
    SUCCESS = "success"
    ALERT = "alert"
    INFO = "info"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(NotificationType, name="notification_type", values_callable=lambda e: [m.value for m in e]), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    target_route = Column(String, nullable=True) # client navigation hint
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now)
