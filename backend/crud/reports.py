"""
Saved report records.

A receiving report snapshots inventory items as they were taken into stock,
with the totals computed from the live rows at generation time. Admins see
every report; other users see the reports they created or were granted.
"""

from decimal import Decimal
from typing import Iterable, List, Optional, Sequence
import logging
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from exceptions import ForbiddenError, NotFoundError, WorkflowValidationError
from models.reports import Report, ReportAccess, ReportType
from schemas.reports import ReportCreate
from crud.inventory_items import get_inventory_item
from crud.users import get_user
from utils import now, sqlalchemy_to_dict, to_money
from utils.auth_utils import get_user_identifier
from utils.events import event_bus, EntityChanged

logger = logging.getLogger("reports")

RECEIVING_FIELDS = {
    "id", "supplier", "date_received", "quantity", "unit_of_measure", "item_name",
    "location", "unit_cost", "amount", "remarks",
}


def _report_event(report: Report) -> EntityChanged:
    return EntityChanged(
        "report",
        report.id,
        "create",
        sqlalchemy_to_dict(report, fields={"id", "name", "report_type", "total_amount", "total_quantity", "created_by"}),
    )


def _require_admin(actor, action: str) -> None:
    if not actor.is_admin:
        raise ForbiddenError(f"Only admins can {action}")


def _grant(db: Session, report: Report, user_ids: Iterable[int]) -> List[int]:
    """Stage access rows for users not already allowed; returns the new grantees."""
    existing = {grant.user_id for grant in report.grants}
    added = []
    for user_id in user_ids:
        if user_id == report.created_by or user_id in existing:
            continue
        if get_user(db, user_id) is None:
            raise NotFoundError("User", user_id)
        report.grants.append(ReportAccess(user_id=user_id))
        existing.add(user_id)
        added.append(user_id)
    return added


def receiving_snapshot(item) -> dict:
    line = sqlalchemy_to_dict(item, fields=RECEIVING_FIELDS)
    line["category_name"] = item.category_name
    return line


def create_receiving_report(
    db: Session,
    actor,
    inventory_item_ids: Sequence[int],
    date_range: Optional[str] = None,
    access_granted_to: Sequence[int] = (),
) -> Report:
    """Snapshot the given items and their totals into a receiving report.

    Ids that no longer resolve to a live item are skipped; at least one must.
    """
    _require_admin(actor, "generate receiving reports")
    if not inventory_item_ids:
        raise WorkflowValidationError.for_field("inventory_item_ids", "Item IDs are required")

    items = []
    seen = set()
    for item_id in inventory_item_ids:
        if item_id in seen:
            continue
        seen.add(item_id)
        item = get_inventory_item(db, item_id)
        if item is None:
            logger.warning(f"Receiving report: inventory item (ID: {item_id}) not found; skipped")
            continue
        items.append(item)
    if not items:
        raise WorkflowValidationError.for_field("inventory_item_ids", "None of the given inventory items exist")

    total_amount = to_money(sum((Decimal(item.amount or 0) for item in items), Decimal("0")))
    total_quantity = sum(item.quantity for item in items)
    generated_at = now()
    today = generated_at.strftime("%m/%d/%Y")

    try:
        report = Report(
            name=f"Receiving Report - {today}",
            report_type=ReportType.RECEIVING_REPORT,
            date_range=(date_range or "").strip() or today,
            data={
                "items": [receiving_snapshot(item) for item in items],
                "total_amount": str(total_amount),
                "total_quantity": total_quantity,
                "generated_at": generated_at.isoformat(),
            },
            total_amount=total_amount,
            total_quantity=total_quantity,
            created_by=actor.id,
        )
        db.add(report)
        db.flush()
        _grant(db, report, access_granted_to)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(report)

    logger.info(
        f"Receiving report (ID: {report.id}) for {len(items)} item(s) generated by user "
        f"{get_user_identifier(actor)}; total {report.total_amount}, quantity {report.total_quantity}"
    )
    event_bus.publish(_report_event(report))
    return report


def create_report(db: Session, actor, payload: ReportCreate) -> Report:
    """Save an admin-authored report record as given."""
    _require_admin(actor, "create reports")
    try:
        report = Report(
            name=payload.name,
            report_type=payload.report_type,
            date_range=payload.date_range,
            data=payload.data,
            total_amount=to_money(payload.total_amount),
            total_quantity=payload.total_quantity,
            created_by=actor.id,
        )
        db.add(report)
        db.flush()
        _grant(db, report, payload.access_granted_to)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(report)
    logger.info(f"Report '{report.name}' (ID: {report.id}) created by user {get_user_identifier(actor)}")
    event_bus.publish(_report_event(report))
    return report


def grant_report_access(db: Session, actor, report_id: int, user_ids: Sequence[int]) -> Report:
    _require_admin(actor, "share reports")
    report = db.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    try:
        added = _grant(db, report, user_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(report)
    if added:
        logger.info(f"Report (ID: {report_id}) shared with users {added} by user {get_user_identifier(actor)}")
    return report


def _visible_to(actor):
    granted = select(ReportAccess.report_id).where(ReportAccess.user_id == actor.id)
    return or_(Report.created_by == actor.id, Report.id.in_(granted))


def get_reports(db: Session, actor, report_type: Optional[ReportType] = None) -> List[Report]:
    """Admins see every report; others see their own and those shared with them."""
    query = db.query(Report)
    if not actor.is_admin:
        query = query.filter(_visible_to(actor))
    if report_type is not None:
        query = query.filter(Report.report_type == report_type)
    return query.order_by(Report.created_at.desc(), Report.id.desc()).all()


def get_report(db: Session, actor, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    if not actor.is_admin and report.created_by != actor.id and actor.id not in report.access_granted_to:
        raise ForbiddenError("Not authorized to access this report")
    return report
