from decimal import Decimal
from io import BytesIO

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from database import get_db
from main import app
from utils.auth_utils import create_access_token
from utils.realtime import manager


@pytest.fixture
def client(session_factory, users):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(actor):
    return {"Authorization": f"Bearer {create_access_token(actor.id)}"}


def add_item(client, users, item_payload, **overrides):
    response = client.post("/inventory/", json=item_payload(**overrides), headers=auth(users.admin))
    assert response.status_code == 201, response.text
    return response.json()


def test_requests_require_a_bearer_token(client):
    assert client.get("/inventory/").status_code == 401
    bad = client.get("/inventory/", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_realtime_channel_requires_a_valid_token(client, users):
    for url in ("/ws", "/ws?token=not-a-token", f"/ws?user_id={users.employee.id}"):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(url):
                pass
    assert manager.connection_count() == 0


def test_realtime_channel_pushes_to_the_token_holder(client, users, item_payload):
    with client.websocket_connect(f"/ws?token={create_access_token(users.employee.id)}") as ws:
        item = add_item(client, users, item_payload)
        message = ws.receive_json()
        assert message["event"] == "inventory_change"
        assert message["id"] == item["id"]
        assert manager.connection_count() == 1


def test_request_review_round_trip(client, users, item_payload):
    submitted = client.post("/requests/single", json=item_payload(quantity=5, unit_cost="10.00"), headers=auth(users.employee))
    assert submitted.status_code == 201, submitted.text
    request_id = submitted.json()["id"]
    assert submitted.json()["employee"]["name"] == "Carla Cruz"

    unread = client.get("/notifications/unread-count", headers=auth(users.admin))
    assert unread.json() == {"count": 1}

    listed = client.get("/requests/", headers=auth(users.admin))
    assert [r["id"] for r in listed.json()] == [request_id]

    reviewed = client.post(f"/requests/{request_id}/review", json={"status": "approved"}, headers=auth(users.admin))
    assert reviewed.status_code == 200, reviewed.text
    body = reviewed.json()
    assert body["status"] == "approved"
    assert Decimal(body["created_items"][0]["amount"]) == Decimal("50.00")

    again = client.post(f"/requests/{request_id}/review", json={"status": "denied"}, headers=auth(users.admin))
    assert again.status_code == 409
    assert again.json()["detail"] == "Request already processed"
    assert again.json()["status"] == "approved"

    forbidden = client.get(f"/requests/{request_id}", headers=auth(users.other_employee))
    assert forbidden.status_code == 403


def test_validation_errors_name_the_failing_field(client, users, item_payload):
    response = client.post(
        "/requests/bulk",
        json={"items": [item_payload(supplier=None)]},
        headers=auth(users.employee),
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "items.0.supplier"

    shared = client.post(
        "/requests/bulk",
        json={"items": [item_payload(supplier=None)], "supplier": "Shared Co."},
        headers=auth(users.employee),
    )
    assert shared.status_code == 201


def test_insufficient_stock_is_actionable(client, users, item_payload):
    item = add_item(client, users, item_payload, quantity=3)

    response = client.post("/released-orders/requests", json={
        "department_office": "Registrar",
        "items": [{"inventory_item_id": item["id"], "quantity": 5, "unit": "reams", "particulars": "Bond Paper A4"}],
    }, headers=auth(users.employee))

    assert response.status_code == 409
    body = response.json()
    assert (body["item_name"], body["requested"], body["available"]) == ("Bond Paper A4", 5, 3)

    escalated = client.post("/released-orders/insufficient-stock", json={
        "item_name": "Bond Paper A4", "requested": 5, "available": 3,
    }, headers=auth(users.employee))
    assert escalated.json()["notified"] == 2


def test_direct_release_and_exports(client, users, item_payload):
    item = add_item(client, users, item_payload, quantity=10, unit_cost="2.00")

    generated = client.post("/released-orders/generate", json={
        "department_office": "Registrar",
        "received_by": "Mr. Santos",
        "items": [{"inventory_item_id": item["id"], "quantity": 4, "unit": "reams", "particulars": "Bond Paper A4"}],
    }, headers=auth(users.admin))
    assert generated.status_code == 201, generated.text
    report = generated.json()
    assert Decimal(report["total_amount"]) == Decimal("8.00")

    live = client.get(f"/inventory/{item['id']}", headers=auth(users.admin)).json()
    assert live["quantity"] == 6
    assert Decimal(live["amount"]) == Decimal("12.00")

    exported = client.get(f"/released-orders/reports/{report['id']}/export", headers=auth(users.admin))
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("application/vnd.openxmlformats")
    sheet = load_workbook(BytesIO(exported.content)).active
    assert sheet["A1"].value == "SUPPLIES RELEASE ORDER"
    assert sheet["B2"].value == report["sro_no"]

    summary = client.get("/released-orders/reports/export", headers=auth(users.admin))
    summary_sheet = load_workbook(BytesIO(summary.content)).active
    assert summary_sheet["A2"].value == report["sro_no"]

    stats = client.get("/stats/dashboard", headers=auth(users.admin)).json()
    assert stats["total_items"] == 1
    assert stats["total_quantity"] == 6
    assert Decimal(stats["total_value"]) == Decimal("12.00")
    assert stats["total_users"] == 4


def test_receiving_report_and_export(client, users, item_payload):
    paper = add_item(client, users, item_payload, quantity=3, unit_cost="4.25")
    pens = add_item(client, users, item_payload, item_name="Ballpen", quantity=10, unit_cost="2.00")

    denied = client.post("/reports/receiving", json={"inventory_item_ids": [paper["id"]]}, headers=auth(users.employee))
    assert denied.status_code == 403
    empty = client.post("/reports/receiving", json={"inventory_item_ids": []}, headers=auth(users.admin))
    assert empty.status_code == 422

    created = client.post("/reports/receiving", json={
        "inventory_item_ids": [paper["id"], pens["id"]],
        "access_granted_to": [users.employee.id],
    }, headers=auth(users.admin))
    assert created.status_code == 201, created.text
    report = created.json()
    assert Decimal(report["total_amount"]) == Decimal("32.75")
    assert report["total_quantity"] == 13
    assert report["report_type"] == "receiving_report"

    mine = client.get("/reports/", headers=auth(users.employee)).json()
    assert [r["id"] for r in mine] == [report["id"]]
    assert client.get("/reports/", headers=auth(users.other_employee)).json() == []
    assert client.get(f"/reports/{report['id']}", headers=auth(users.other_employee)).status_code == 403

    exported = client.get(f"/reports/{report['id']}/export", headers=auth(users.employee))
    assert exported.status_code == 200
    sheet = load_workbook(BytesIO(exported.content)).active
    assert sheet["A1"].value == "RECEIVING REPORT"
    assert sheet["F6"].value == "Bond Paper A4"
    assert sheet["D8"].value == 13


def test_audit_log_is_admin_only(client, users, item_payload):
    add_item(client, users, item_payload)

    assert client.get("/audit/", headers=auth(users.employee)).status_code == 403
    events = client.get("/audit/?entity_type=inventory", headers=auth(users.admin)).json()
    assert [e["action"] for e in events] == ["create"]


def test_notifications_mark_all_read(client, users, item_payload):
    client.post("/requests/single", json=item_payload(), headers=auth(users.employee))

    notes = client.get("/notifications/", headers=auth(users.admin)).json()
    assert notes[0]["title"] == "New Item Request"
    assert notes[0]["message"] == "Carla Cruz submitted a new item: Bond Paper A4"

    read_one = client.patch(f"/notifications/{notes[0]['id']}/read", headers=auth(users.admin))
    assert read_one.json()["read"] is True
    assert client.patch("/notifications/read-all", headers=auth(users.admin)).json() == {"updated": 0}
    assert client.patch(f"/notifications/{notes[0]['id']}/read", headers=auth(users.employee)).status_code == 404
