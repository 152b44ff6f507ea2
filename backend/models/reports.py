import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from database import Base
from models.inventory_requests import _enum_values
from utils.clock import now


class ReportType(str, enum.Enum):
    RECEIVING_REPORT = "receiving_report"
    INVENTORY_SUMMARY = "inventory_summary"
    CUSTOM = "custom"


class Report(Base):
    """A saved report record; receiving reports snapshot the items taken into stock."""
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    report_type = Column(Enum(ReportType, name="report_type", values_callable=_enum_values), nullable=False, index=True)
    date_range = Column(String, nullable=False)
    # Receiving reports keep {"items": [...], "generated_at": ...}
    data = Column(JSON, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    total_quantity = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=now)

    creator = relationship("User", foreign_keys=[created_by])
    grants = relationship("ReportAccess", cascade="all, delete-orphan", lazy="selectin")

    @property
    def access_granted_to(self):
        return sorted(grant.user_id for grant in self.grants)


class ReportAccess(Base):
    """Users other than the creator allowed to read a report."""
    __tablename__ = "report_access"

    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    granted_at = Column(DateTime(timezone=True), default=now)
