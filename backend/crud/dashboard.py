from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.orm import Session
from models.categories import Category
from models.inventory_items import InventoryItem
from models.inventory_requests import InventoryRequest, RequestStatus
from models.released_orders import ReleasedOrderRequest
from models.users import User
from schemas.reports import DashboardStats
from utils import to_money


def get_dashboard_stats(db: Session) -> DashboardStats:
    # Column queries bypass the soft-delete loader filter
    items = db.query(InventoryItem.quantity, InventoryItem.amount).filter(InventoryItem.deleted_at.is_(None)).all()
    total_value = sum((Decimal(amount or 0) for _, amount in items), Decimal("0"))
    return DashboardStats(
        total_items=len(items),
        total_quantity=sum(quantity for quantity, _ in items),
        total_value=to_money(total_value),
        total_categories=db.query(func.count(Category.id)).scalar() or 0,
        total_users=db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
        pending_requests=db.query(func.count(InventoryRequest.id))
        .filter(InventoryRequest.status == RequestStatus.PENDING).scalar() or 0,
        pending_release_requests=db.query(func.count(ReleasedOrderRequest.id))
        .filter(ReleasedOrderRequest.status == RequestStatus.PENDING).scalar() or 0,
    )
