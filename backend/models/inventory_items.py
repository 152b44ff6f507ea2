from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from utils.clock import now


class InventoryItem(Base, AuditMixin):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_inventory_items_quantity_non_negative'),
        CheckConstraint('unit_cost >= 0', name='ck_inventory_items_unit_cost_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    supplier = Column(String, nullable=False)
    date_received = Column(DateTime(timezone=True), default=now, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    unit_of_measure = Column(String, default="pcs", nullable=False) # e.g., "pcs", "boxes", "reams"
    item_name = Column(String, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    location = Column(String, nullable=False)
    unit_cost = Column(Numeric(12, 2), default=0, nullable=False)
    amount = Column(Numeric(12, 2), default=0, nullable=False) # quantity * unit_cost, stored for reporting
    remarks = Column(Text, nullable=True)
    # Optimistic-lock counter; every UPDATE is issued as "... WHERE version = :seen"
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    category = relationship("Category", back_populates="items")

    @property
    def category_name(self):
        return self.category.name if self.category else None
