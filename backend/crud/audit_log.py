from typing import List, Optional
from sqlalchemy.orm import Session
from models.audit_log import AuditEvent, AuditEntityType, AuditAction
from schemas.audit_log import AuditEventCreate
from crud.users import actor_snapshot


def create_audit_event(db: Session, log_entry: AuditEventCreate) -> AuditEvent:
    """Stage an audit row in the caller's transaction; the caller commits."""
    db_log_entry = AuditEvent(**log_entry.model_dump())
    db.add(db_log_entry)
    db.flush()
    return db_log_entry


def log_action(
    db: Session,
    actor,
    entity_type: AuditEntityType,
    entity_id,
    action: AuditAction,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
) -> AuditEvent:
    log_entry = AuditEventCreate(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        actor_id=actor.id if actor else None,
        actor_snapshot=actor_snapshot(db, actor),
        before=before,
        after=after,
    )
    return create_audit_event(db, log_entry)


def get_audit_events(db: Session, entity_type: Optional[AuditEntityType] = None, limit: int = 100) -> List[AuditEvent]:
    query = db.query(AuditEvent)
    if entity_type:
        query = query.filter(AuditEvent.entity_type == entity_type)
    return query.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit).all()
