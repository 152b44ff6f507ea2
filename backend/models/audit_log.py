import enum
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Enum
from database import Base
from utils.clock import now


class AuditEntityType(str, enum.Enum):
    INVENTORY = "inventory"
    USER = "user"
    CATEGORY = "category"
    REQUEST = "request"


class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    APPROVE = "approve"
    DENY = "deny"


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(Enum(AuditEntityType, name="audit_entity_type", values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    entity_id = Column(String, nullable=False)
    action = Column(Enum(AuditAction, name="audit_action", values_callable=lambda e: [m.value for m in e]), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Name/email at the time of the action, kept even if the user is deleted
    actor_snapshot = Column(JSON, nullable=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now, index=True)
