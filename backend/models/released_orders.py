from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from database import Base
from models.inventory_requests import RequestStatus, _enum_values
from utils.clock import now


class ReleasedOrderRequest(Base):
    """An employee's ask to release item(s) from inventory."""
    __tablename__ = "released_order_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    department_office = Column(String, nullable=False)
    rs_no = Column(String, nullable=True) # Requisition Slip Number
    # Caller-declared partial release; unrelated to the PARTIAL review outcome
    is_partial_release = Column(Boolean, default=False, nullable=False)
    items = Column(JSON, nullable=False)
    item_statuses = Column(JSON, nullable=True)
    status = Column(Enum(RequestStatus, name="request_status", values_callable=_enum_values), default=RequestStatus.PENDING, nullable=False, index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    # Set once, when a report is generated from this request
    report_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=now)

    employee = relationship("User", foreign_keys=[employee_id])


class ReleasedOrderReport(Base):
    """Immutable record of a completed release."""
    __tablename__ = "released_order_reports"

    id = Column(Integer, primary_key=True, index=True)
    sro_no = Column(String, unique=True, nullable=True, index=True) # Supplies Release Order Number
    rs_no = Column(String, nullable=True)
    department_office = Column(String, nullable=False)
    is_partial_release = Column(Boolean, default=False, nullable=False)
    request_id = Column(Integer, ForeignKey("released_order_requests.id", ondelete="SET NULL"), nullable=True)
    # Items actually released
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    released_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    received_by = Column(String, nullable=True) # Name of the person who received
    created_at = Column(DateTime(timezone=True), default=now)

    releaser = relationship("User", foreign_keys=[released_by])
