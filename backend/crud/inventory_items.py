from typing import List, Optional, Sequence, Tuple
import logging
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from exceptions import ConflictError, ForbiddenError, NotFoundError, WorkflowValidationError
from models.audit_log import AuditEntityType, AuditAction
from models.category_history import CategoryChangeType
from models.inventory_items import InventoryItem
from schemas.inventory_items import ItemPayload, InventoryItemUpdate
from crud.audit_log import log_action
from crud.categories import get_or_create_category, add_category_history
from utils import compute_amount, now, sqlalchemy_to_dict
from utils.auth_utils import get_user_identifier
from utils.events import event_bus, EntityChanged

logger = logging.getLogger("inventory_items")

SNAPSHOT_FIELDS = {"id", "item_name", "quantity", "location", "unit_cost", "amount", "category_id"}
HISTORY_FIELDS = {"item_name", "quantity", "location", "unit_cost"}


def item_snapshot(item: InventoryItem) -> dict:
    return sqlalchemy_to_dict(item, fields=SNAPSHOT_FIELDS)


def item_event(item: InventoryItem, operation: str) -> EntityChanged:
    return EntityChanged("inventory", item.id, operation, item_snapshot(item))


def parse_item_payloads(raw_items: Sequence, field: str = "items") -> List[ItemPayload]:
    """Validate item payloads, reporting every failing field with its index."""
    parsed = []
    errors = []
    for index, raw in enumerate(raw_items):
        try:
            if isinstance(raw, ItemPayload):
                raw = raw.model_dump()
            parsed.append(ItemPayload.model_validate(raw))
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                errors.append({"field": f"{field}.{index}.{loc}", "message": err["msg"]})
    if errors:
        raise WorkflowValidationError("Validation error", errors)
    return parsed


def get_inventory_item(db: Session, item_id: int) -> Optional[InventoryItem]:
    return db.query(InventoryItem).filter(InventoryItem.id == item_id).first()


def get_inventory_items(db: Session, category_id: Optional[int] = None, skip: int = 0, limit: int = 100) -> List[InventoryItem]:
    query = db.query(InventoryItem)
    if category_id is not None:
        query = query.filter(InventoryItem.category_id == category_id)
    return query.order_by(InventoryItem.item_name, InventoryItem.id).offset(skip).limit(limit).all()


def lock_inventory_item(db: Session, item_id: int) -> Optional[InventoryItem]:
    """Load the live row under a row lock (PostgreSQL) with fresh attribute values."""
    return (
        db.query(InventoryItem)
        .filter(InventoryItem.id == item_id)
        .populate_existing()
        .with_for_update()
        .first()
    )


def add_item_from_payload(db: Session, actor, payload: ItemPayload) -> InventoryItem:
    """Create an inventory item inside the caller's transaction.

    The amount is recomputed from quantity and unit cost; the payload's amount
    is ignored. Writes the item_added history row and the create audit event.
    """
    category = get_or_create_category(db, payload.category_name)
    db_item = InventoryItem(
        supplier=payload.supplier,
        quantity=payload.quantity,
        unit_of_measure=payload.unit_of_measure,
        item_name=payload.item_name,
        category_id=category.id if category else None,
        location=payload.location,
        unit_cost=payload.unit_cost,
        amount=compute_amount(payload.quantity, payload.unit_cost),
        remarks=payload.remarks,
        date_received=now(),
        created_by=get_user_identifier(actor),
        updated_by=get_user_identifier(actor),
    )
    db.add(db_item)
    db.flush()

    if category:
        add_category_history(
            db,
            category_id=category.id,
            item_id=db_item.id,
            change_type=CategoryChangeType.ITEM_ADDED,
            previous_value=None,
            new_value=sqlalchemy_to_dict(db_item, fields=HISTORY_FIELDS),
            changed_by=actor.id,
        )
    log_action(db, actor, AuditEntityType.INVENTORY, db_item.id, AuditAction.CREATE,
               before=None, after=item_snapshot(db_item))
    return db_item


def deduct_stock(db: Session, actor, item: InventoryItem, quantity: int, note: str = None) -> InventoryItem:
    """Subtract ``quantity`` from a locked live item and restate its amount.

    The caller has already verified availability; the version column turns a
    concurrent write between that check and this flush into StaleDataError.
    """
    before = item_snapshot(item)
    previous = sqlalchemy_to_dict(item, fields=HISTORY_FIELDS)
    item.quantity = item.quantity - quantity
    if item.quantity < 0:
        raise ValueError(f"Deduction would make item {item.id} negative")
    item.amount = compute_amount(item.quantity, item.unit_cost)
    item.updated_by = get_user_identifier(actor)
    db.flush()

    if item.category_id:
        add_category_history(
            db,
            category_id=item.category_id,
            item_id=item.id,
            change_type=CategoryChangeType.QUANTITY_CHANGE,
            previous_value=previous,
            new_value={**sqlalchemy_to_dict(item, fields=HISTORY_FIELDS), "note": note},
            changed_by=actor.id,
        )
    log_action(db, actor, AuditEntityType.INVENTORY, item.id, AuditAction.UPDATE,
               before=before, after=item_snapshot(item))
    return item


def _require_admin(actor, action: str):
    if not actor.is_admin:
        raise ForbiddenError(f"Only admins can {action}")


def create_inventory_item(db: Session, actor, payload) -> InventoryItem:
    """Admin direct add; bypasses the request workflow."""
    _require_admin(actor, "add inventory directly")
    payload = parse_item_payloads([payload], field="item")[0]
    try:
        db_item = add_item_from_payload(db, actor, payload)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_item)
    logger.info(f"Inventory item '{db_item.item_name}' (ID: {db_item.id}) created by user {get_user_identifier(actor)}")
    event_bus.publish(item_event(db_item, "create"))
    return db_item


def bulk_create_inventory_items(db: Session, actor, payloads: Sequence) -> List[InventoryItem]:
    """Admin direct bulk add. All items are created or none are."""
    _require_admin(actor, "add inventory directly")
    if not payloads:
        raise WorkflowValidationError.for_field("items", "Items array is required")
    parsed = parse_item_payloads(payloads)
    try:
        created = [add_item_from_payload(db, actor, payload) for payload in parsed]
        db.commit()
    except Exception:
        db.rollback()
        raise
    for db_item in created:
        db.refresh(db_item)
    logger.info(f"{len(created)} inventory items bulk-created by user {get_user_identifier(actor)}")
    event_bus.publish_all(item_event(db_item, "create") for db_item in created)
    return created


def _history_change_type(changes: dict) -> Optional[CategoryChangeType]:
    if "quantity" in changes:
        return CategoryChangeType.QUANTITY_CHANGE
    if "location" in changes:
        return CategoryChangeType.LOCATION_CHANGE
    if "unit_cost" in changes:
        return CategoryChangeType.COST_CHANGE
    return None


def _concurrent_edit(actor, item_id: int) -> ConflictError:
    logger.warning(f"Inventory item (ID: {item_id}) changed concurrently; edit by user {get_user_identifier(actor)} rejected")
    return ConflictError("Inventory item was changed by another user; please retry", "Inventory item", item_id)


def update_inventory_item(db: Session, actor, item_id: int, item: InventoryItemUpdate) -> InventoryItem:
    _require_admin(actor, "edit inventory")
    db_item = lock_inventory_item(db, item_id)
    if db_item is None:
        raise NotFoundError("Inventory item", item_id)

    try:
        before = item_snapshot(db_item)
        previous = sqlalchemy_to_dict(db_item, fields=HISTORY_FIELDS)
        update_data = item.model_dump(exclude_unset=True)
        category_name = update_data.pop("category_name", None)
        if category_name:
            db_item.category_id = get_or_create_category(db, category_name).id

        changes = {
            key: value for key, value in update_data.items()
            if value is not None and getattr(db_item, key) != value
        }
        for key, value in changes.items():
            setattr(db_item, key, value)
        db_item.amount = compute_amount(db_item.quantity, db_item.unit_cost)
        db_item.updated_by = get_user_identifier(actor)
        db.flush()

        change_type = _history_change_type(changes)
        if db_item.category_id and change_type:
            add_category_history(
                db,
                category_id=db_item.category_id,
                item_id=db_item.id,
                change_type=change_type,
                previous_value=previous,
                new_value=sqlalchemy_to_dict(db_item, fields=HISTORY_FIELDS),
                changed_by=actor.id,
            )
        log_action(db, actor, AuditEntityType.INVENTORY, db_item.id, AuditAction.UPDATE,
                   before=before, after=item_snapshot(db_item))
        db.commit()
    except StaleDataError:
        db.rollback()
        raise _concurrent_edit(actor, item_id)
    except Exception:
        db.rollback()
        raise
    db.refresh(db_item)
    logger.info(f"Inventory item '{db_item.item_name}' (ID: {item_id}) updated by user {get_user_identifier(actor)}")
    event_bus.publish(item_event(db_item, "update"))
    return db_item


def delete_inventory_item(db: Session, actor, item_id: int) -> None:
    """Soft delete; history and audit rows keep their reference."""
    _require_admin(actor, "delete inventory")
    db_item = lock_inventory_item(db, item_id)
    if db_item is None:
        raise NotFoundError("Inventory item", item_id)
    try:
        before = item_snapshot(db_item)
        db_item.deleted_at = now()
        db_item.deleted_by = get_user_identifier(actor)
        log_action(db, actor, AuditEntityType.INVENTORY, item_id, AuditAction.DELETE, before=before, after=None)
        db.commit()
    except StaleDataError:
        db.rollback()
        raise _concurrent_edit(actor, item_id)
    except Exception:
        db.rollback()
        raise
    logger.info(f"Inventory item '{before['item_name']}' (ID: {item_id}) deleted by user {get_user_identifier(actor)}")
    event_bus.publish(EntityChanged("inventory", item_id, "delete", {"id": item_id}))


def released_snapshot(live: InventoryItem, requested: dict) -> Tuple[dict, int]:
    """Normalize a requested release line against the live item."""
    quantity = int(requested["quantity"])
    line = {
        "inventory_item_id": live.id,
        "quantity": quantity,
        "unit": requested.get("unit") or live.unit_of_measure,
        "particulars": requested.get("particulars") or live.item_name,
        "unit_cost": str(live.unit_cost),
        "amount": str(compute_amount(quantity, live.unit_cost)),
        "remarks": requested.get("remarks"),
    }
    return line, quantity
