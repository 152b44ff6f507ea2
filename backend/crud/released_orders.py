"""
Release workflow: items leave inventory through a Supplies Release Order.

Two paths end in the same deduction step:

* admin-direct: an admin supplies the items and department details and the
  release is generated immediately;
* employee-request: an employee submits a request, an admin reviews it
  (pending -> approved | denied | partial, terminal), then the employee or an
  admin generates the release for the approved items only.

Review never touches stock. Generation validates every line against the live
quantities before deducting any of them, inside one transaction. Rows are read
``FOR UPDATE`` and written with a version check; a concurrent deduction that
slips between read and write raises StaleDataError, and the whole generation
is retried against fresh quantities.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import List, Optional, Sequence
import logging
import os
from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError
from exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    WorkflowValidationError,
)
from models.audit_log import AuditEntityType, AuditAction
from models.inventory_requests import RequestStatus
from models.notifications import NotificationType
from models.released_orders import ReleasedOrderRequest, ReleasedOrderReport
from schemas.released_orders import (
    GenerateReleaseRequest,
    ReleasedItemPayload,
    ReleaseReviewDecision,
    ReleaseReviewResult,
)
from crud import approvals
from crud import notifications as crud_notifications
from crud.audit_log import log_action
from crud.inventory_items import (
    deduct_stock,
    get_inventory_item,
    item_event,
    lock_inventory_item,
    released_snapshot,
)
from crud.users import get_user
from utils import now, sqlalchemy_to_dict, to_money
from utils.auth_utils import get_user_identifier
from utils.events import event_bus, EntityChanged

load_dotenv()

logger = logging.getLogger("released_orders")

SRO_PREFIX = os.getenv("SRO_PREFIX", "SRO")
DEDUCTION_MAX_RETRIES = int(os.getenv("DEDUCTION_MAX_RETRIES", "3"))

RELEASABLE_STATUSES = (RequestStatus.APPROVED, RequestStatus.PARTIAL)


def _request_event(request: ReleasedOrderRequest, operation: str) -> EntityChanged:
    return EntityChanged(
        "released_order_request",
        request.id,
        operation,
        sqlalchemy_to_dict(request, fields={"id", "employee_id", "department_office", "status", "report_id"}),
    )


def _report_event(report: ReleasedOrderReport) -> EntityChanged:
    return EntityChanged(
        "released_order_report",
        report.id,
        "create",
        sqlalchemy_to_dict(report, fields={"id", "sro_no", "department_office", "total_amount", "released_by"}),
    )


def _parse_released_items(raw_items: Sequence) -> List[ReleasedItemPayload]:
    parsed = []
    errors = []
    for index, raw in enumerate(raw_items):
        try:
            if isinstance(raw, ReleasedItemPayload):
                raw = raw.model_dump()
            parsed.append(ReleasedItemPayload.model_validate(raw))
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                errors.append({"field": f"items.{index}.{loc}", "message": err["msg"]})
    if errors:
        raise WorkflowValidationError("Validation error", errors)
    return parsed


def _require_department(department_office: Optional[str]) -> str:
    if department_office is None or not department_office.strip():
        raise WorkflowValidationError.for_field("department_office", "Department/Office is required")
    return department_office.strip()


def format_sro_no(report_id: int, year: int) -> str:
    return f"{SRO_PREFIX}-{year}-{report_id:04d}"


# --- Submit -----------------------------------------------------------------

def submit_release_request(
    db: Session,
    actor,
    department_office: Optional[str],
    items: Sequence,
    rs_no: Optional[str] = None,
    is_partial_release: bool = False,
) -> ReleasedOrderRequest:
    """Record an employee's ask to release items.

    Stock is checked against live quantities but not reserved; generation
    checks again.
    """
    if actor.is_admin:
        raise ForbiddenError("Admins can directly generate released orders without approval")
    department_office = _require_department(department_office)
    if not items:
        raise WorkflowValidationError.for_field("items", "At least one item is required")
    payloads = _parse_released_items(items)

    # Lines for the same item are checked against its stock together
    requested = OrderedDict()
    for payload in payloads:
        requested[payload.inventory_item_id] = requested.get(payload.inventory_item_id, 0) + payload.quantity

    lines = []
    for payload in payloads:
        live = get_inventory_item(db, payload.inventory_item_id)
        if live is None:
            raise NotFoundError("Inventory item", payload.inventory_item_id)
        total = requested[live.id]
        if live.quantity < total:
            logger.warning(
                f"Release request rejected: '{live.item_name}' requested {total}, available {live.quantity}"
            )
            raise InsufficientStockError(live.id, payload.particulars, total, live.quantity)
        line, _ = released_snapshot(live, payload.model_dump(mode="json"))
        lines.append(line)

    employee = get_user(db, actor.id)
    employee_name = employee.name if employee else "An employee"
    try:
        db_request = ReleasedOrderRequest(
            employee_id=actor.id,
            department_office=department_office,
            rs_no=rs_no,
            is_partial_release=bool(is_partial_release),
            items=lines,
            status=RequestStatus.PENDING,
        )
        db.add(db_request)
        db.flush()
        notifications = crud_notifications.notify_admins(
            db,
            NotificationType.ALERT,
            "New Released Order Request",
            f"{employee_name} submitted a released order request for {len(lines)} item(s)",
            "/process-released-orders",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_request)

    logger.info(f"Released order request (ID: {db_request.id}) submitted by user {get_user_identifier(actor)}")
    crud_notifications.dispatch(notifications)
    event_bus.publish(_request_event(db_request, "create"))
    return db_request


# --- Review -----------------------------------------------------------------

_STATUS_TEXT = {
    RequestStatus.APPROVED: "approved",
    RequestStatus.PARTIAL: "partially approved",
    RequestStatus.DENIED: "denied",
}


def review_release_request(db: Session, actor, request_id: int, decision: ReleaseReviewDecision) -> ReleaseReviewResult:
    """Approve or deny a pending release request. Stock is not touched."""
    if not actor.is_admin:
        raise ForbiddenError("Only admins can review released order requests")

    db_request = db.get(ReleasedOrderRequest, request_id)
    if db_request is None:
        raise NotFoundError("Released order request", request_id)
    if db_request.status != RequestStatus.PENDING:
        raise ConflictError("Request already processed", "Released order request", request_id, db_request.status.value)

    outcomes = approvals.resolve_item_outcomes(len(db_request.items), decision.status, decision.item_decisions)
    final_status = approvals.aggregate_status(outcomes)
    approved_count = sum(1 for status, _ in outcomes if status == approvals.APPROVED)
    denied_count = len(outcomes) - approved_count
    status_text = _STATUS_TEXT[final_status]

    message = f"Your released order request has been {status_text}."
    if final_status != RequestStatus.DENIED:
        message += " You can now generate the report."

    try:
        approvals.claim_pending(db, ReleasedOrderRequest, request_id, {
            "status": final_status,
            "item_statuses": approvals.build_item_statuses(outcomes),
            "reviewed_by": actor.id,
            "reviewed_at": now(),
        })
        log_action(
            db, actor, AuditEntityType.REQUEST, request_id,
            AuditAction.APPROVE if approved_count else AuditAction.DENY,
            before={"status": RequestStatus.PENDING.value, "kind": "release"},
            after={"status": final_status.value, "approved": approved_count, "denied": denied_count, "kind": "release"},
        )
        notification = crud_notifications.create_notification(
            db,
            user_id=db_request.employee_id,
            type=NotificationType.ALERT if final_status == RequestStatus.DENIED else NotificationType.SUCCESS,
            title=f"Released Order Request {status_text.capitalize()}",
            message=message,
            target_route="/released-orders",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_request)

    logger.info(f"Released order request (ID: {request_id}) {status_text} by user {get_user_identifier(actor)}")
    crud_notifications.dispatch([notification])
    event_bus.publish(_request_event(db_request, "update"))
    return ReleaseReviewResult(
        request_id=request_id,
        status=final_status,
        approved_count=approved_count,
        denied_count=denied_count,
    )


# --- Generate ---------------------------------------------------------------

def _resolve_release(db: Session, actor, params: GenerateReleaseRequest):
    """Step 1: the lines to release and the report header.

    Returns (lines, header, source_request).
    """
    if params.request_id is None:
        if not actor.is_admin:
            raise WorkflowValidationError.for_field("request_id", "Request ID is required for employees")
        if not params.items:
            raise WorkflowValidationError.for_field("items", "Items are required")
        header = {
            "department_office": _require_department(params.department_office),
            "rs_no": params.rs_no,
            "is_partial_release": bool(params.is_partial_release),
        }
        lines = [item.model_dump(mode="json") for item in _parse_released_items(params.items)]
        return lines, header, None

    db_request = (
        db.query(ReleasedOrderRequest)
        .filter(ReleasedOrderRequest.id == params.request_id)
        .populate_existing()
        .first()
    )
    if db_request is None:
        raise NotFoundError("Released order request", params.request_id)
    if not actor.is_admin and db_request.employee_id != actor.id:
        raise ForbiddenError("Not authorized to access this request")
    if db_request.status not in RELEASABLE_STATUSES:
        raise ForbiddenError("Request must be approved before generating report")
    if db_request.report_id is not None:
        raise ConflictError(
            "A released order has already been generated for this request",
            "Released order request",
            db_request.id,
            db_request.status.value,
        )

    indices = approvals.approved_indices(db_request.item_statuses)
    lines = [db_request.items[index] for index in indices]
    header = {
        "department_office": db_request.department_office,
        "rs_no": db_request.rs_no,
        "is_partial_release": db_request.is_partial_release,
    }
    return lines, header, db_request


def _validate_stock(db: Session, lines: Sequence[dict]) -> "OrderedDict[int, object]":
    """Step 2: lock and check every live item before any deduction.

    Quantities are summed per item so two lines for the same item are checked
    together.
    """
    requested = OrderedDict()
    names = {}
    for line in lines:
        item_id = int(line["inventory_item_id"])
        requested[item_id] = requested.get(item_id, 0) + int(line["quantity"])
        names.setdefault(item_id, line.get("particulars"))

    live_items = OrderedDict()
    for item_id, quantity in requested.items():
        live = lock_inventory_item(db, item_id)
        if live is None:
            raise NotFoundError("Inventory item", item_id)
        if live.quantity < quantity:
            logger.warning(
                f"Release blocked: '{live.item_name}' (ID: {item_id}) requested {quantity}, available {live.quantity}"
            )
            raise InsufficientStockError(item_id, names[item_id] or live.item_name, quantity, live.quantity)
        live_items[item_id] = live
    return live_items


def _generate_once(db: Session, actor, params: GenerateReleaseRequest):
    lines, header, source_request = _resolve_release(db, actor, params)
    if not lines:
        raise WorkflowValidationError.for_field("items", "No approved items to release")

    live_items = _validate_stock(db, lines)

    # Step 3: deduct, in the order given
    released = []
    for line in lines:
        live = live_items[int(line["inventory_item_id"])]
        snapshot, quantity = released_snapshot(live, line)
        deduct_stock(db, actor, live, quantity, note="released")
        released.append(snapshot)

    # Steps 4-5: the report; its number derives from the row id
    total_amount = sum((Decimal(line["amount"]) for line in released), Decimal("0"))
    report = ReleasedOrderReport(
        rs_no=header["rs_no"],
        department_office=header["department_office"],
        is_partial_release=header["is_partial_release"],
        request_id=source_request.id if source_request else None,
        items=released,
        total_amount=to_money(total_amount),
        released_by=actor.id,
        received_by=params.received_by,
    )
    db.add(report)
    db.flush()
    report.sro_no = format_sro_no(report.id, now().year)
    db.flush()

    notifications = []
    if source_request is not None:
        result = db.execute(
            update(ReleasedOrderRequest)
            .where(ReleasedOrderRequest.id == source_request.id, ReleasedOrderRequest.report_id.is_(None))
            .values(report_id=report.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                "A released order has already been generated for this request",
                "Released order request",
                source_request.id,
                source_request.status.value,
            )
        if source_request.employee_id != actor.id:
            notifications.append(crud_notifications.create_notification(
                db,
                user_id=source_request.employee_id,
                type=NotificationType.SUCCESS,
                title="Released Order Generated",
                message=f"Released order {report.sro_no} has been generated for your request.",
                target_route="/released-orders",
            ))

    return report, list(live_items.values()), source_request, notifications


def generate_release(db: Session, actor, params: GenerateReleaseRequest) -> ReleasedOrderReport:
    """Deduct stock and produce a ReleasedOrderReport, atomically."""
    for attempt in range(1, DEDUCTION_MAX_RETRIES + 1):
        try:
            report, touched_items, source_request, notifications = _generate_once(db, actor, params)
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning(
                f"Concurrent inventory change during release by user {get_user_identifier(actor)}; "
                f"retrying (attempt {attempt} of {DEDUCTION_MAX_RETRIES})"
            )
            continue
        except Exception:
            db.rollback()
            raise
        break
    else:
        raise ConflictError(
            "Inventory changed concurrently; please retry the release",
            "Released order report",
            params.request_id or "direct",
        )

    db.refresh(report)
    logger.info(
        f"Released order {report.sro_no} (ID: {report.id}) for {report.department_office} "
        f"generated by user {get_user_identifier(actor)}; total {report.total_amount}"
    )
    crud_notifications.dispatch(notifications)
    event_bus.publish_all(item_event(db_item, "update") for db_item in touched_items)
    if source_request is not None:
        db.refresh(source_request)
        event_bus.publish(_request_event(source_request, "update"))
    event_bus.publish(_report_event(report))
    return report


# --- Escalation and queries -------------------------------------------------

def notify_insufficient_stock(db: Session, actor, item_name: str, requested: int, available: int) -> int:
    """Employee side channel: tell every admin an item ran short. Not a state transition."""
    user = get_user(db, actor.id)
    if user is None:
        raise NotFoundError("User", actor.id)
    try:
        notifications = crud_notifications.notify_admins(
            db,
            NotificationType.ALERT,
            "Insufficient Stock Alert",
            f'{user.name} requested {requested} of "{item_name}" but only {available} available.',
            "/manage-inventory",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"User {get_user_identifier(actor)} escalated insufficient stock for '{item_name}' to {len(notifications)} admin(s)")
    crud_notifications.dispatch(notifications)
    return len(notifications)


def get_release_requests(db: Session, actor, pending_only: bool = False) -> List[ReleasedOrderRequest]:
    if not actor.is_admin:
        raise ForbiddenError("Only admins can list all released order requests")
    query = db.query(ReleasedOrderRequest).options(selectinload(ReleasedOrderRequest.employee))
    if pending_only:
        query = query.filter(ReleasedOrderRequest.status == RequestStatus.PENDING)
    return query.order_by(ReleasedOrderRequest.created_at.desc(), ReleasedOrderRequest.id.desc()).all()


def get_my_release_requests(db: Session, actor) -> List[ReleasedOrderRequest]:
    return (
        db.query(ReleasedOrderRequest)
        .filter(ReleasedOrderRequest.employee_id == actor.id)
        .order_by(ReleasedOrderRequest.created_at.desc(), ReleasedOrderRequest.id.desc())
        .all()
    )


def _own_request_ids(actor):
    return select(ReleasedOrderRequest.id).where(ReleasedOrderRequest.employee_id == actor.id)


def get_released_order_reports(db: Session, actor) -> List[ReleasedOrderReport]:
    """Admins see every report; employees see reports they released or that
    were generated from their own requests."""
    query = db.query(ReleasedOrderReport)
    if not actor.is_admin:
        query = query.filter(or_(
            ReleasedOrderReport.released_by == actor.id,
            ReleasedOrderReport.request_id.in_(_own_request_ids(actor)),
        ))
    return query.order_by(ReleasedOrderReport.created_at.desc(), ReleasedOrderReport.id.desc()).all()


def get_released_order_report(db: Session, actor, report_id: int) -> ReleasedOrderReport:
    report = db.get(ReleasedOrderReport, report_id)
    if report is None:
        raise NotFoundError("Released order report", report_id)
    if actor.is_admin or report.released_by == actor.id:
        return report
    if report.request_id is not None:
        source = db.get(ReleasedOrderRequest, report.request_id)
        if source is not None and source.employee_id == actor.id:
            return report
    raise ForbiddenError("Not authorized to access this report")
