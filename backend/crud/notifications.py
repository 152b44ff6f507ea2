from typing import Iterable, List
import logging
from sqlalchemy.orm import Session
from exceptions import NotFoundError
from models.notifications import Notification, NotificationType
from crud.users import list_admins
from utils import sqlalchemy_to_dict
from utils.events import event_bus, NotificationCreated

logger = logging.getLogger("notifications")


def create_notification(
    db: Session,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    target_route: str = None,
) -> Notification:
    """Stage a notification row in the caller's transaction."""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        target_route=target_route,
    )
    db.add(notification)
    db.flush()
    return notification


def notify_admins(db: Session, type: NotificationType, title: str, message: str, target_route: str = None) -> List[Notification]:
    return [
        create_notification(db, admin.id, type, title, message, target_route)
        for admin in list_admins(db)
    ]


def dispatch(notifications: Iterable[Notification]) -> None:
    """Push committed notifications to their recipients.

    Must only be called after the rows are committed.
    """
    for notification in notifications:
        event_bus.publish(NotificationCreated(notification.user_id, sqlalchemy_to_dict(notification)))


def get_user_notifications(db: Session, user_id: int, limit: int = 100) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def get_unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(Notification.user_id == user_id, Notification.read.is_(False)).count()


def mark_as_read(db: Session, user_id: int, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id, Notification.user_id == user_id
    ).first()
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"Marked {updated} notifications read for user {user_id}")
    return updated
