from typing import List, Optional
from sqlalchemy.orm import Session
from models.users import User, UserRole


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def list_admins(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.role == UserRole.ADMIN, User.is_active.is_(True))
        .order_by(User.id)
        .all()
    )


def actor_snapshot(db: Session, actor) -> Optional[dict]:
    """Name and email of the actor at the time of an action."""
    if actor is None:
        return None
    user = get_user(db, actor.id)
    if user is None:
        return {"name": actor.name, "email": actor.email}
    return {"name": user.name, "email": user.email}
