from decimal import Decimal

import pytest

from crud import inventory_requests as crud_requests
from crud.audit_log import get_audit_events
from crud.categories import get_category_by_name, get_category_history
from crud.notifications import get_user_notifications
from exceptions import ConflictError, ForbiddenError, NotFoundError, WorkflowValidationError
from models.audit_log import AuditEntityType, AuditAction
from models.category_history import CategoryChangeType
from models.inventory_items import InventoryItem
from models.inventory_requests import InventoryRequest, RequestStatus, RequestType
from models.notifications import NotificationType
from schemas.inventory_requests import ItemDecision, ReviewDecision, DenialReason
from utils.events import EntityChanged, NotificationCreated


def test_single_item_blanket_approval(db, users, item_payload, events):
    request = crud_requests.submit_inventory_request(
        db, users.employee, [item_payload(quantity=5, unit_cost="10.00", amount="999.00")]
    )
    assert request.status == RequestStatus.PENDING
    assert request.request_type == RequestType.SINGLE
    assert db.query(InventoryItem).count() == 0

    result = crud_requests.review_inventory_request(db, users.admin, request.id, ReviewDecision(status="approved"))

    assert result.status == RequestStatus.APPROVED
    assert (result.approved_count, result.denied_count) == (1, 0)
    items = db.query(InventoryItem).all()
    assert len(items) == 1
    assert items[0].quantity == 5
    assert items[0].amount == Decimal("50.00")
    assert result.created_items[0].amount == Decimal("50.00")

    db.refresh(request)
    assert request.status == RequestStatus.APPROVED
    assert request.reviewed_by == users.admin.id
    assert request.reviewed_at is not None
    assert request.item_statuses == {"0": {"status": "approved", "reason": None}}

    notes = get_user_notifications(db, users.employee.id)
    assert len(notes) == 1
    assert notes[0].type == NotificationType.SUCCESS
    assert notes[0].message == 'Your item "Bond Paper A4" has been approved and added to inventory!'

    entity_events = [(e.entity_type, e.operation) for e in events if isinstance(e, EntityChanged)]
    assert ("inventory", "create") in entity_events
    assert ("request", "update") in entity_events


def test_bulk_request_partial_approval(db, users, item_payload):
    request = crud_requests.submit_inventory_request(db, users.employee, [
        item_payload(item_name="Stapler"),
        item_payload(item_name="Toner", category_name="Printer Supplies"),
        item_payload(item_name="Folder"),
    ])
    assert request.request_type == RequestType.BULK

    decision = ReviewDecision(status="approved", item_decisions=[
        ItemDecision(index=0, status="approved"),
        ItemDecision(index=1, status="denied", reason=DenialReason.WRONG_UNIT_COST),
        ItemDecision(index=2, status="approved"),
    ])
    result = crud_requests.review_inventory_request(db, users.admin, request.id, decision)

    assert result.status == RequestStatus.PARTIAL
    assert sorted(i.item_name for i in db.query(InventoryItem).all()) == ["Folder", "Stapler"]
    db.refresh(request)
    assert len(request.item_statuses) == 3
    assert request.item_statuses["1"] == {"status": "denied", "reason": "wrong_unit_cost"}

    notes = get_user_notifications(db, users.employee.id)
    assert notes[0].message == "2 items approved, 1 item denied. Check the request for details."
    assert notes[0].type == NotificationType.SUCCESS


def test_denied_request_creates_nothing_and_alerts(db, users, item_payload):
    request = crud_requests.submit_inventory_request(db, users.employee, [item_payload()])
    result = crud_requests.review_inventory_request(db, users.admin, request.id, ReviewDecision(status="denied"))

    assert result.status == RequestStatus.DENIED
    assert result.created_items == []
    assert db.query(InventoryItem).count() == 0
    note = get_user_notifications(db, users.employee.id)[0]
    assert note.type == NotificationType.ALERT
    assert note.message == "Your request has been denied."


def test_second_review_is_conflict_without_side_effects(db, users, item_payload):
    request = crud_requests.submit_inventory_request(db, users.employee, [item_payload()])
    crud_requests.review_inventory_request(db, users.admin, request.id, ReviewDecision(status="approved"))
    items_before = db.query(InventoryItem).count()
    notes_before = len(get_user_notifications(db, users.employee.id))

    with pytest.raises(ConflictError) as exc:
        crud_requests.review_inventory_request(db, users.admin2, request.id, ReviewDecision(status="denied"))

    assert exc.value.status == "approved"
    assert db.query(InventoryItem).count() == items_before
    assert len(get_user_notifications(db, users.employee.id)) == notes_before
    db.refresh(request)
    assert request.reviewed_by == users.admin.id


def test_review_writes_audit_and_category_history(db, users, item_payload):
    request = crud_requests.submit_inventory_request(db, users.employee, [item_payload(category_name="Janitorial")])
    crud_requests.review_inventory_request(db, users.admin, request.id, ReviewDecision(status="approved"))

    category = get_category_by_name(db, "Janitorial")
    assert category is not None
    history = get_category_history(db, category.id)
    assert [h.change_type for h in history] == [CategoryChangeType.ITEM_ADDED]
    assert history[0].changed_by == users.admin.id

    request_audit = get_audit_events(db, entity_type=AuditEntityType.REQUEST)
    assert len(request_audit) == 1
    assert request_audit[0].action == AuditAction.APPROVE
    assert request_audit[0].before == {"status": "pending"}
    assert request_audit[0].actor_snapshot == {"name": "Ana Admin", "email": "admin@office.test"}

    inventory_audit = get_audit_events(db, entity_type=AuditEntityType.INVENTORY)
    assert [a.action for a in inventory_audit] == [AuditAction.CREATE]


def test_submit_notifies_every_admin(db, users, item_payload, events):
    crud_requests.submit_inventory_request(db, users.employee, [item_payload(), item_payload(item_name="Pens")])

    for admin in (users.admin, users.admin2):
        notes = get_user_notifications(db, admin.id)
        assert len(notes) == 1
        assert notes[0].title == "New Bulk Item Request"
        assert notes[0].message == "Carla Cruz submitted 2 items for approval"
    pushed = {e.user_id for e in events if isinstance(e, NotificationCreated)}
    assert pushed == {users.admin.id, users.admin2.id}


def test_submit_validation(db, users, item_payload):
    with pytest.raises(WorkflowValidationError):
        crud_requests.submit_inventory_request(db, users.employee, [])

    with pytest.raises(WorkflowValidationError) as exc:
        crud_requests.submit_inventory_request(db, users.employee, [
            item_payload(),
            item_payload(quantity=0, location="  "),
        ])
    fields = {error["field"] for error in exc.value.errors}
    assert fields == {"items.1.quantity", "items.1.location"}
    assert db.query(InventoryRequest).count() == 0


def test_shared_supplier_fills_missing_suppliers(db, users, item_payload):
    request = crud_requests.submit_inventory_request(
        db, users.employee,
        [item_payload(supplier=None), item_payload(supplier="Own Supplier")],
        request_type=RequestType.BULK,
        supplier="Shared Supplier",
    )
    assert [item["supplier"] for item in request.items] == ["Shared Supplier", "Own Supplier"]


def test_role_and_ownership_checks(db, users, item_payload):
    with pytest.raises(ForbiddenError):
        crud_requests.submit_inventory_request(db, users.admin, [item_payload()])

    request = crud_requests.submit_inventory_request(db, users.employee, [item_payload()])
    with pytest.raises(ForbiddenError):
        crud_requests.review_inventory_request(db, users.employee, request.id, ReviewDecision(status="approved"))
    with pytest.raises(ForbiddenError):
        crud_requests.get_inventory_request(db, users.other_employee, request.id)
    with pytest.raises(NotFoundError):
        crud_requests.review_inventory_request(db, users.admin, 999, ReviewDecision(status="approved"))

    assert crud_requests.get_inventory_requests(db, users.other_employee) == []
    assert len(crud_requests.get_inventory_requests(db, users.admin)) == 1
    assert len(crud_requests.get_inventory_requests(db, users.admin, status=RequestStatus.PENDING)) == 1


def test_incomplete_item_decisions_leave_request_pending(db, users, item_payload):
    request = crud_requests.submit_inventory_request(db, users.employee, [item_payload(), item_payload()])
    decision = ReviewDecision(status="partial", item_decisions=[ItemDecision(index=0, status="approved")])

    with pytest.raises(WorkflowValidationError):
        crud_requests.review_inventory_request(db, users.admin, request.id, decision)

    db.refresh(request)
    assert request.status == RequestStatus.PENDING
    assert db.query(InventoryItem).count() == 0
