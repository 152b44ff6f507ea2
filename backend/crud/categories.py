from typing import List, Optional
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from exceptions import ConflictError, ForbiddenError, NotFoundError
from models.audit_log import AuditEntityType, AuditAction
from models.categories import Category
from models.category_history import CategoryHistory, CategoryChangeType
from crud.audit_log import log_action
from utils import sqlalchemy_to_dict
from utils.auth_utils import get_user_identifier
from utils.events import event_bus, EntityChanged

logger = logging.getLogger("categories")


def get_category_by_name(db: Session, name: str) -> Optional[Category]:
    return db.query(Category).filter(Category.name == name).first()


def get_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.name).all()


def get_or_create_category(db: Session, name: Optional[str]) -> Optional[Category]:
    """Resolve a category by name, creating it when unknown.

    Runs inside the caller's transaction; the unique constraint on name turns
    a concurrent duplicate insert into an IntegrityError that aborts the
    caller's transaction.
    """
    if not name:
        return None
    category = get_category_by_name(db, name)
    if category:
        return category
    category = Category(name=name)
    db.add(category)
    db.flush()
    logger.info(f"Category '{name}' created with id {category.id}")
    return category


def add_category_history(
    db: Session,
    category_id: int,
    item_id: Optional[int],
    change_type: CategoryChangeType,
    previous_value: Optional[dict],
    new_value: Optional[dict],
    changed_by: Optional[int],
) -> CategoryHistory:
    entry = CategoryHistory(
        category_id=category_id,
        item_id=item_id,
        change_type=change_type,
        previous_value=previous_value,
        new_value=new_value,
        changed_by=changed_by,
    )
    db.add(entry)
    db.flush()
    return entry


def get_category_history(db: Session, category_id: int) -> List[CategoryHistory]:
    if db.get(Category, category_id) is None:
        raise NotFoundError("Category", category_id)
    return (
        db.query(CategoryHistory)
        .filter(CategoryHistory.category_id == category_id)
        .order_by(CategoryHistory.changed_at.desc(), CategoryHistory.id.desc())
        .all()
    )


def create_category(db: Session, actor, name: str) -> Category:
    if not actor.is_admin:
        raise ForbiddenError("Only admins can create categories directly")
    if get_category_by_name(db, name):
        raise ConflictError("Category already exists", "Category", name)
    try:
        category = Category(name=name)
        db.add(category)
        db.flush()
        log_action(db, actor, AuditEntityType.CATEGORY, category.id, AuditAction.CREATE,
                   after=sqlalchemy_to_dict(category, fields={"id", "name"}))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Category already exists", "Category", name)
    except Exception:
        db.rollback()
        raise
    db.refresh(category)
    logger.info(f"Category '{category.name}' created by user {get_user_identifier(actor)}")
    event_bus.publish(EntityChanged("category", category.id, "create", {"id": category.id, "name": category.name}))
    return category
