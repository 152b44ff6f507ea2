from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from models.audit_log import AuditEntityType, AuditAction

class AuditEventCreate(BaseModel):
    entity_type: AuditEntityType
    entity_id: str
    action: AuditAction
    actor_id: Optional[int] = None
    actor_snapshot: Optional[Dict[str, Any]] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None

class AuditEvent(AuditEventCreate):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
