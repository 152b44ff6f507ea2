import pytest

from crud import approvals
from exceptions import WorkflowValidationError
from models.inventory_requests import RequestStatus
from schemas.inventory_requests import ItemDecision, DenialReason


def decisions(*statuses):
    return [ItemDecision(index=i, status=s) for i, s in enumerate(statuses)]


@pytest.mark.parametrize("statuses, expected", [
    (["approved"], RequestStatus.APPROVED),
    (["approved", "approved", "approved"], RequestStatus.APPROVED),
    (["denied"], RequestStatus.DENIED),
    (["denied", "denied"], RequestStatus.DENIED),
    (["approved", "denied"], RequestStatus.PARTIAL),
    (["denied", "denied", "approved"], RequestStatus.PARTIAL),
])
@pytest.mark.parametrize("declared", ["approved", "denied", "partial"])
def test_status_is_derived_from_item_tally_not_declared_status(statuses, expected, declared):
    outcomes = approvals.resolve_item_outcomes(len(statuses), declared, decisions(*statuses))
    assert approvals.aggregate_status(outcomes) == expected


def test_blanket_decision_applies_to_every_item():
    outcomes = approvals.resolve_item_outcomes(3, "denied", None)
    assert outcomes == [("denied", None)] * 3
    assert approvals.aggregate_status(outcomes) == RequestStatus.DENIED


def test_partial_without_item_decisions_is_rejected():
    with pytest.raises(WorkflowValidationError) as exc:
        approvals.resolve_item_outcomes(2, "partial", None)
    assert exc.value.errors[0]["field"] == "item_decisions"


def test_uncovered_indices_are_a_validation_error():
    with pytest.raises(WorkflowValidationError) as exc:
        approvals.resolve_item_outcomes(3, "partial", decisions("approved", "denied"))
    assert "[2]" in exc.value.errors[0]["message"]


def test_duplicate_and_out_of_range_indices_are_reported():
    item_decisions = [
        ItemDecision(index=0, status="approved"),
        ItemDecision(index=0, status="denied"),
        ItemDecision(index=5, status="denied"),
        ItemDecision(index=1, status="approved"),
    ]
    with pytest.raises(WorkflowValidationError) as exc:
        approvals.resolve_item_outcomes(2, "partial", item_decisions)
    messages = [error["message"] for error in exc.value.errors]
    assert any("more than one decision" in m for m in messages)
    assert any("out of range" in m for m in messages)


def test_reason_kept_only_for_denied_items():
    item_decisions = [
        ItemDecision(index=0, status="approved", reason=DenialReason.OTHER),
        ItemDecision(index=1, status="denied", reason=DenialReason.WRONG_QUANTITY),
    ]
    outcomes = approvals.resolve_item_outcomes(2, "partial", item_decisions)
    assert outcomes == [("approved", None), ("denied", "wrong_quantity")]


def test_item_statuses_cover_every_item_and_list_approved_indices():
    outcomes = [("approved", None), ("denied", "other"), ("approved", None)]
    item_statuses = approvals.build_item_statuses(outcomes)
    assert set(item_statuses) == {"0", "1", "2"}
    assert item_statuses["1"] == {"status": "denied", "reason": "other"}
    assert approvals.approved_indices(item_statuses) == [0, 2]
    assert approvals.approved_indices(None) == []


def test_pluralize():
    assert approvals.pluralize(1, "item") == "1 item"
    assert approvals.pluralize(3, "item") == "3 items"
