import enum
from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from database import Base
from utils.clock import now


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    PARTIAL = "partial"


class RequestType(str, enum.Enum):
    SINGLE = "single"
    BULK = "bulk"


def _enum_values(e):
    return [m.value for m in e]


class InventoryRequest(Base):
    """An employee's ask to add item(s) to inventory."""
    __tablename__ = "inventory_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    request_type = Column(Enum(RequestType, name="request_type", values_callable=_enum_values), default=RequestType.SINGLE, nullable=False)
    # Ordered item payloads as submitted
    items = Column(JSON, nullable=False)
    # {"0": {"status": "approved", "reason": null}, "1": {"status": "denied", "reason": "wrong_quantity"}}
    item_statuses = Column(JSON, nullable=True)
    status = Column(Enum(RequestStatus, name="request_status", values_callable=_enum_values), default=RequestStatus.PENDING, nullable=False, index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now)

    employee = relationship("User", foreign_keys=[employee_id])
