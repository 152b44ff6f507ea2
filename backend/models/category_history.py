import enum
from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now


class CategoryChangeType(str, enum.Enum):
    ITEM_ADDED = "item_added"
    QUANTITY_CHANGE = "quantity_change"
    LOCATION_CHANGE = "location_change"
    COST_CHANGE = "cost_change"
    PURCHASE = "purchase"


class CategoryHistory(Base):
    """Append-only record of inventory mutations, grouped by category."""
    __tablename__ = "category_history"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    # Weak references: the item or user may disappear, the history row stays
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True)
    change_type = Column(
        Enum(CategoryChangeType, name="category_change_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    previous_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at = Column(DateTime(timezone=True), default=now)

    category = relationship("Category", back_populates="history")
