from decimal import Decimal

import pytest

from crud import reports as crud_reports
from crud.inventory_items import delete_inventory_item
from exceptions import ForbiddenError, NotFoundError, WorkflowValidationError
from models.reports import ReportType
from schemas.reports import ReportCreate
from utils.events import EntityChanged


def test_receiving_report_totals_come_from_the_items(db, users, make_item, events):
    paper = make_item(quantity=3, unit_cost="4.25")
    pens = make_item(item_name="Ballpen", quantity=10, unit_cost="2.00", category_name="Writing")

    report = crud_reports.create_receiving_report(db, users.admin, [paper.id, pens.id, paper.id, 999])

    assert report.report_type == ReportType.RECEIVING_REPORT
    assert report.total_amount == Decimal("32.75")
    assert report.total_quantity == 13
    assert report.name.startswith("Receiving Report - ")
    assert report.date_range == report.name.split(" - ")[1]
    assert [line["item_name"] for line in report.data["items"]] == ["Bond Paper A4", "Ballpen"]
    assert report.data["items"][1]["category_name"] == "Writing"
    assert report.data["total_amount"] == "32.75"
    assert report.created_by == users.admin.id
    assert any(isinstance(e, EntityChanged) and e.entity_type == "report" for e in events)


def test_receiving_report_skips_deleted_items_and_needs_one(db, users, make_item):
    kept = make_item(quantity=2)
    gone = make_item(item_name="Stapler", quantity=1)
    delete_inventory_item(db, users.admin, gone.id)

    report = crud_reports.create_receiving_report(db, users.admin, [kept.id, gone.id], date_range="October 2026")
    assert report.total_quantity == 2
    assert report.date_range == "October 2026"

    with pytest.raises(WorkflowValidationError) as exc:
        crud_reports.create_receiving_report(db, users.admin, [gone.id])
    assert exc.value.errors[0]["field"] == "inventory_item_ids"
    with pytest.raises(WorkflowValidationError):
        crud_reports.create_receiving_report(db, users.admin, [])


def test_only_admins_create_reports(db, users, make_item):
    item = make_item()
    with pytest.raises(ForbiddenError):
        crud_reports.create_receiving_report(db, users.employee, [item.id])
    with pytest.raises(ForbiddenError):
        crud_reports.create_report(db, users.employee, ReportCreate(name="Mine", date_range="Q3", data={}))


def test_listing_is_scoped_to_creator_and_grantees(db, users, make_item):
    item = make_item()
    shared = crud_reports.create_receiving_report(db, users.admin, [item.id], access_granted_to=[users.employee.id])
    private = crud_reports.create_receiving_report(db, users.admin, [item.id])
    summary = crud_reports.create_report(
        db, users.admin2, ReportCreate(name="Quarterly count", report_type="inventory_summary", date_range="Q3", data={})
    )

    assert [r.id for r in crud_reports.get_reports(db, users.admin)] == [summary.id, private.id, shared.id]
    assert [r.id for r in crud_reports.get_reports(db, users.admin, ReportType.RECEIVING_REPORT)] == [private.id, shared.id]
    assert [r.id for r in crud_reports.get_reports(db, users.employee)] == [shared.id]
    assert crud_reports.get_reports(db, users.other_employee) == []

    assert crud_reports.get_report(db, users.employee, shared.id).access_granted_to == [users.employee.id]
    with pytest.raises(ForbiddenError):
        crud_reports.get_report(db, users.employee, private.id)
    with pytest.raises(NotFoundError):
        crud_reports.get_report(db, users.admin, 999)


def test_granting_access_later(db, users, make_item):
    report = crud_reports.create_receiving_report(db, users.admin, [make_item().id])

    with pytest.raises(ForbiddenError):
        crud_reports.grant_report_access(db, users.employee, report.id, [users.employee.id])
    with pytest.raises(NotFoundError):
        crud_reports.grant_report_access(db, users.admin, report.id, [999])

    crud_reports.grant_report_access(db, users.admin, report.id, [users.other_employee.id, users.other_employee.id])
    updated = crud_reports.grant_report_access(db, users.admin, report.id, [users.other_employee.id, users.admin.id])

    assert updated.access_granted_to == [users.other_employee.id]
    assert crud_reports.get_report(db, users.other_employee, report.id).id == report.id
