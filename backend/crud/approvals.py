"""
Review logic shared by the inventory-request and release-request workflows.

A review is either a blanket decision applied to every item, or one decision
per item. Whatever the reviewer declared as the overall status, the stored
status is derived from the per-item tally alone.
"""

from typing import Dict, List, Optional, Sequence, Tuple
from sqlalchemy import update
from sqlalchemy.orm import Session
from exceptions import ConflictError, WorkflowValidationError
from models.inventory_requests import RequestStatus

APPROVED = "approved"
DENIED = "denied"

Outcome = Tuple[str, Optional[str]]  # (status, reason)


def resolve_item_outcomes(item_count: int, status: str, item_decisions: Optional[Sequence]) -> List[Outcome]:
    """Return one (status, reason) per item, in item order.

    Per-item decisions must cover every index exactly once; a gap is reported
    rather than defaulted. A reason is kept only on denied items.
    """
    if item_decisions is None:
        if status == "partial":
            raise WorkflowValidationError.for_field(
                "item_decisions", "A partial review requires a decision for every item"
            )
        return [(status, None)] * item_count

    outcomes: Dict[int, Outcome] = {}
    errors = []
    for decision in item_decisions:
        if decision.index >= item_count:
            errors.append({"field": "item_decisions", "message": f"Item index {decision.index} is out of range"})
            continue
        if decision.index in outcomes:
            errors.append({"field": "item_decisions", "message": f"Item index {decision.index} has more than one decision"})
            continue
        reason = decision.reason if decision.status == DENIED else None
        if reason is not None and hasattr(reason, "value"):
            reason = reason.value
        outcomes[decision.index] = (decision.status, reason)

    missing = [index for index in range(item_count) if index not in outcomes]
    if missing:
        errors.append({"field": "item_decisions", "message": f"Missing decisions for item indices {missing}"})
    if errors:
        raise WorkflowValidationError("Invalid item decisions", errors)
    return [outcomes[index] for index in range(item_count)]


def aggregate_status(outcomes: Sequence[Outcome]) -> RequestStatus:
    statuses = [status for status, _ in outcomes]
    if statuses and all(s == APPROVED for s in statuses):
        return RequestStatus.APPROVED
    if statuses and all(s == DENIED for s in statuses):
        return RequestStatus.DENIED
    return RequestStatus.PARTIAL


def build_item_statuses(outcomes: Sequence[Outcome]) -> Dict[str, dict]:
    return {str(index): {"status": status, "reason": reason} for index, (status, reason) in enumerate(outcomes)}


def approved_indices(item_statuses: Optional[dict]) -> List[int]:
    if not item_statuses:
        return []
    return sorted(int(index) for index, entry in item_statuses.items() if entry.get("status") == APPROVED)


def claim_pending(db: Session, model, request_id: int, values: dict) -> None:
    """Move a pending request to its terminal state, once.

    The conditional UPDATE makes a second (or concurrent) review a Conflict.
    """
    result = db.execute(
        update(model)
        .where(model.id == request_id, model.status == RequestStatus.PENDING)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = db.query(model.status).filter(model.id == request_id).scalar()
        raise ConflictError(
            "Request already processed",
            model.__name__,
            request_id,
            current.value if current is not None else None,
        )


def pluralize(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
