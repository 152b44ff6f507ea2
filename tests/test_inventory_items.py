from decimal import Decimal

import pytest
from sqlalchemy import update

from crud import inventory_items as crud_items
from crud.audit_log import get_audit_events
from crud.categories import create_category, get_categories, get_category_history
from exceptions import ConflictError, ForbiddenError, NotFoundError, WorkflowValidationError
from models.audit_log import AuditEntityType, AuditAction
from models.category_history import CategoryChangeType
from models.inventory_items import InventoryItem
from schemas.inventory_items import InventoryItemUpdate


def test_admin_create_recomputes_amount_and_records_history(db, users, item_payload):
    item = crud_items.create_inventory_item(db, users.admin, item_payload(quantity=3, unit_cost="4.25", amount="1.00"))

    assert item.amount == Decimal("12.75")
    assert item.category_name == "Paper"
    assert item.created_by == "admin@office.test"
    history = get_category_history(db, item.category_id)
    assert [h.change_type for h in history] == [CategoryChangeType.ITEM_ADDED]


def test_bulk_create_is_all_or_nothing(db, users, item_payload):
    with pytest.raises(WorkflowValidationError) as exc:
        crud_items.bulk_create_inventory_items(db, users.admin, [item_payload(), item_payload(unit_cost="-1")])
    assert exc.value.errors[0]["field"] == "items.1.unit_cost"
    assert db.query(InventoryItem).count() == 0

    created = crud_items.bulk_create_inventory_items(db, users.admin, [item_payload(), item_payload(item_name="Pens")])
    assert len(created) == 2
    assert len(get_categories(db)) == 1


@pytest.mark.parametrize("changes, expected_type", [
    ({"quantity": 8}, CategoryChangeType.QUANTITY_CHANGE),
    ({"quantity": 8, "location": "Shelf B"}, CategoryChangeType.QUANTITY_CHANGE),
    ({"location": "Shelf B"}, CategoryChangeType.LOCATION_CHANGE),
    ({"unit_cost": "12.00"}, CategoryChangeType.COST_CHANGE),
])
def test_update_records_one_history_row(db, users, make_item, changes, expected_type):
    item = make_item(quantity=5, unit_cost="10.00")

    updated = crud_items.update_inventory_item(db, users.admin, item.id, InventoryItemUpdate(**changes))

    assert updated.amount == Decimal(updated.quantity) * updated.unit_cost
    history = get_category_history(db, item.category_id)
    assert [h.change_type for h in history] == [expected_type, CategoryChangeType.ITEM_ADDED]
    audit = get_audit_events(db, entity_type=AuditEntityType.INVENTORY)
    assert audit[0].action == AuditAction.UPDATE
    assert audit[0].before["quantity"] == 5


def test_update_without_tracked_change_skips_history(db, users, make_item):
    item = make_item()
    crud_items.update_inventory_item(db, users.admin, item.id, InventoryItemUpdate(remarks="Checked"))
    assert len(get_category_history(db, item.category_id)) == 1


def test_update_rejects_negative_quantity():
    with pytest.raises(ValueError):
        InventoryItemUpdate(quantity=-1)


def test_soft_delete_hides_item(db, users, make_item):
    item = make_item()
    item_id = item.id

    crud_items.delete_inventory_item(db, users.admin, item_id)

    assert crud_items.get_inventory_item(db, item_id) is None
    assert crud_items.get_inventory_items(db) == []
    hidden = db.query(InventoryItem).execution_options(include_deleted=True).filter(InventoryItem.id == item_id).one()
    assert hidden.deleted_by == "admin@office.test"
    assert get_audit_events(db, entity_type=AuditEntityType.INVENTORY)[0].action == AuditAction.DELETE
    with pytest.raises(NotFoundError):
        crud_items.delete_inventory_item(db, users.admin, item_id)


@pytest.fixture
def edited_elsewhere(monkeypatch, session_factory):
    """Lock the row, then let another session bump it before our write lands."""
    lock = crud_items.lock_inventory_item

    def lock_then_race(db, item_id):
        db_item = lock(db, item_id)
        other = session_factory()
        try:
            other.execute(
                update(InventoryItem)
                .where(InventoryItem.id == item_id)
                .values(quantity=InventoryItem.quantity - 1, version=InventoryItem.version + 1)
            )
            other.commit()
        finally:
            other.close()
        return db_item

    monkeypatch.setattr(crud_items, "lock_inventory_item", lock_then_race)


@pytest.mark.parametrize("operation", ["update", "delete"])
def test_concurrent_edit_is_a_conflict(db, users, make_item, edited_elsewhere, operation):
    item = make_item(quantity=5)
    item_id = item.id

    with pytest.raises(ConflictError) as exc:
        if operation == "update":
            crud_items.update_inventory_item(db, users.admin, item_id, InventoryItemUpdate(quantity=9))
        else:
            crud_items.delete_inventory_item(db, users.admin, item_id)

    assert exc.value.status_code == 409
    assert crud_items.get_inventory_item(db, item_id).quantity == 4


def test_employees_cannot_touch_the_ledger_directly(db, users, make_item, item_payload):
    item = make_item()
    with pytest.raises(ForbiddenError):
        crud_items.create_inventory_item(db, users.employee, item_payload())
    with pytest.raises(ForbiddenError):
        crud_items.update_inventory_item(db, users.employee, item.id, InventoryItemUpdate(quantity=1))
    with pytest.raises(ForbiddenError):
        crud_items.delete_inventory_item(db, users.employee, item.id)


def test_category_filter_and_creation(db, users, make_item):
    paper = make_item()
    make_item(item_name="Mop", category_name="Janitorial")

    assert [i.id for i in crud_items.get_inventory_items(db, category_id=paper.category_id)] == [paper.id]

    category = create_category(db, users.admin, "Electrical")
    assert category.name == "Electrical"
    with pytest.raises(ConflictError):
        create_category(db, users.admin, "Electrical")
    with pytest.raises(ForbiddenError):
        create_category(db, users.employee, "Plumbing")
    with pytest.raises(NotFoundError):
        get_category_history(db, 999)
    assert get_audit_events(db, entity_type=AuditEntityType.CATEGORY)[0].action == AuditAction.CREATE
