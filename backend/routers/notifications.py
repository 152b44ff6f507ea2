from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from schemas.notifications import Notification, UnreadCount
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud import notifications as crud_notifications

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[Notification])
def read_notifications(limit: int = 100, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_notifications.get_user_notifications(db, actor.id, limit=limit)


@router.get("/unread-count", response_model=UnreadCount)
def read_unread_count(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return UnreadCount(count=crud_notifications.get_unread_count(db, actor.id))


@router.patch("/read-all")
def mark_all_read(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    updated = crud_notifications.mark_all_as_read(db, actor.id)
    return {"updated": updated}


@router.patch("/{notification_id}/read", response_model=Notification)
def mark_read(notification_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_notifications.mark_as_read(db, actor.id, notification_id)
