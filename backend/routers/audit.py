from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from exceptions import ForbiddenError
from models.audit_log import AuditEntityType
from schemas.audit_log import AuditEvent
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud.audit_log import get_audit_events

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/", response_model=List[AuditEvent])
def read_audit_events(
    entity_type: Optional[AuditEntityType] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    if not actor.is_admin:
        raise ForbiddenError("Only admins can view the audit log")
    return get_audit_events(db, entity_type=entity_type, limit=limit)
