"""
Inventory request workflow: employees ask for items to be added to inventory,
admins approve or deny them item by item.

    pending -> approved | denied | partial   (terminal)

Submission only records intent. Approval creates the inventory items, their
category history and audit rows, and notifies the employee, all in one
transaction; events are published after commit.
"""

from typing import List, Optional, Sequence
import logging
from sqlalchemy.orm import Session, selectinload
from exceptions import ConflictError, ForbiddenError, NotFoundError, WorkflowValidationError
from models.audit_log import AuditEntityType, AuditAction
from models.inventory_requests import InventoryRequest, RequestStatus, RequestType
from models.notifications import NotificationType
from schemas.inventory_requests import ReviewDecision, ReviewResult
from schemas.inventory_items import InventoryItem as InventoryItemSchema
from crud import approvals
from crud import notifications as crud_notifications
from crud.audit_log import log_action
from crud.inventory_items import add_item_from_payload, item_event, parse_item_payloads
from crud.users import get_user
from utils import now, sqlalchemy_to_dict
from utils.auth_utils import get_user_identifier
from utils.events import event_bus, EntityChanged

logger = logging.getLogger("inventory_requests")


def _request_event(request: InventoryRequest, operation: str) -> EntityChanged:
    return EntityChanged(
        "request",
        request.id,
        operation,
        sqlalchemy_to_dict(request, fields={"id", "employee_id", "request_type", "status", "item_statuses"}),
    )


def _with_shared_supplier(items: Sequence, supplier: Optional[str]) -> list:
    merged = []
    for item in items:
        data = item.model_dump() if hasattr(item, "model_dump") else dict(item)
        if not data.get("supplier") and supplier:
            data["supplier"] = supplier
        merged.append(data)
    return merged


def submit_inventory_request(
    db: Session,
    actor,
    items: Sequence,
    request_type: Optional[RequestType] = None,
    supplier: Optional[str] = None,
) -> InventoryRequest:
    """Record an employee's ask to add items; notifies every admin."""
    if actor.is_admin:
        raise ForbiddenError("Admins add inventory directly without a request")
    if not items:
        raise WorkflowValidationError.for_field("items", "At least one item is required")

    payloads = parse_item_payloads(_with_shared_supplier(items, supplier))
    if request_type is None:
        request_type = RequestType.SINGLE if len(payloads) == 1 else RequestType.BULK

    employee = get_user(db, actor.id)
    employee_name = employee.name if employee else "An employee"
    if request_type == RequestType.SINGLE:
        title = "New Item Request"
        message = f"{employee_name} submitted a new item: {payloads[0].item_name}"
    else:
        title = "New Bulk Item Request"
        message = f"{employee_name} submitted {len(payloads)} items for approval"

    try:
        db_request = InventoryRequest(
            employee_id=actor.id,
            request_type=request_type,
            items=[payload.model_dump(mode="json") for payload in payloads],
            status=RequestStatus.PENDING,
        )
        db.add(db_request)
        db.flush()
        notifications = crud_notifications.notify_admins(db, NotificationType.ALERT, title, message, "/requests")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_request)

    logger.info(f"Inventory request (ID: {db_request.id}) with {len(payloads)} item(s) submitted by user {get_user_identifier(actor)}")
    crud_notifications.dispatch(notifications)
    event_bus.publish(_request_event(db_request, "create"))
    return db_request


def _review_message(final_status: RequestStatus, created_items: list, approved: int, denied: int):
    if final_status == RequestStatus.APPROVED:
        if len(created_items) == 1:
            return f'Your item "{created_items[0].item_name}" has been approved and added to inventory!'
        return f"All {len(created_items)} items have been approved and added to inventory!"
    if final_status == RequestStatus.DENIED:
        return "Your request has been denied."
    return (
        f"{approvals.pluralize(approved, 'item')} approved, {approvals.pluralize(denied, 'item')} denied. "
        "Check the request for details."
    )


def review_inventory_request(db: Session, actor, request_id: int, decision: ReviewDecision) -> ReviewResult:
    """Approve or deny a pending request, in full or per item."""
    if not actor.is_admin:
        raise ForbiddenError("Only admins can review requests")

    db_request = db.get(InventoryRequest, request_id)
    if db_request is None:
        raise NotFoundError("Request", request_id)
    if db_request.status != RequestStatus.PENDING:
        raise ConflictError("Request already processed", "Request", request_id, db_request.status.value)

    items = list(db_request.items)
    outcomes = approvals.resolve_item_outcomes(len(items), decision.status, decision.item_decisions)
    final_status = approvals.aggregate_status(outcomes)
    item_statuses = approvals.build_item_statuses(outcomes)
    approved_count = sum(1 for status, _ in outcomes if status == approvals.APPROVED)
    denied_count = len(outcomes) - approved_count

    try:
        approvals.claim_pending(db, InventoryRequest, request_id, {
            "status": final_status,
            "item_statuses": item_statuses,
            "reviewed_by": actor.id,
            "reviewed_at": now(),
        })

        payloads = parse_item_payloads(items)
        created_items = [
            add_item_from_payload(db, actor, payloads[index])
            for index, (status, _) in enumerate(outcomes)
            if status == approvals.APPROVED
        ]

        log_action(
            db, actor, AuditEntityType.REQUEST, request_id,
            AuditAction.APPROVE if approved_count else AuditAction.DENY,
            before={"status": RequestStatus.PENDING.value},
            after={"status": final_status.value, "approved": approved_count, "denied": denied_count},
        )

        notification = crud_notifications.create_notification(
            db,
            user_id=db_request.employee_id,
            type=NotificationType.SUCCESS if approved_count else NotificationType.ALERT,
            title="Items Approved" if approved_count else "Request Denied",
            message=_review_message(final_status, created_items, approved_count, denied_count),
            target_route="/inventory" if approved_count else "/requests",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_request)
    for db_item in created_items:
        db.refresh(db_item)

    logger.info(
        f"Inventory request (ID: {request_id}) reviewed as {final_status.value} "
        f"({approved_count} approved, {denied_count} denied) by user {get_user_identifier(actor)}"
    )
    crud_notifications.dispatch([notification])
    event_bus.publish_all(item_event(db_item, "create") for db_item in created_items)
    event_bus.publish(_request_event(db_request, "update"))

    return ReviewResult(
        request_id=request_id,
        status=final_status,
        approved_count=approved_count,
        denied_count=denied_count,
        created_items=[InventoryItemSchema.model_validate(db_item) for db_item in created_items],
    )


def get_inventory_requests(db: Session, actor, status: Optional[RequestStatus] = None) -> List[InventoryRequest]:
    """Admins see every request; employees see their own."""
    query = db.query(InventoryRequest).options(selectinload(InventoryRequest.employee))
    if not actor.is_admin:
        query = query.filter(InventoryRequest.employee_id == actor.id)
    if status:
        query = query.filter(InventoryRequest.status == status)
    return query.order_by(InventoryRequest.created_at.desc(), InventoryRequest.id.desc()).all()


def get_inventory_request(db: Session, actor, request_id: int) -> InventoryRequest:
    db_request = db.get(InventoryRequest, request_id)
    if db_request is None:
        raise NotFoundError("Request", request_id)
    if not actor.is_admin and db_request.employee_id != actor.id:
        raise ForbiddenError("Not authorized to access this request")
    return db_request
