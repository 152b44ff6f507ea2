"""
Workflow error taxonomy.

Every error raised by the request and release workflows derives from
WorkflowError. Each carries an HTTP status code and a structured ``details``
mapping so the client can render a precise message (which field failed, which
item ran short, which request is already closed).
"""

from typing import Any, Dict, List, Optional


class WorkflowError(Exception):
    """Base class for all workflow failures."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.details}


class WorkflowValidationError(WorkflowError):
    """Malformed or missing input."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, {"errors": errors or []})
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "WorkflowValidationError":
        return cls(message, [{"field": field, "message": message}])


class NotFoundError(WorkflowError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", {"entity": entity, "id": str(entity_id)})
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(WorkflowError):
    """Role or ownership mismatch."""

    status_code = 403

    def __init__(self, reason: str):
        super().__init__(reason, {"reason": reason})


class ConflictError(WorkflowError):
    """State-machine violation, e.g. reviewing an already reviewed request."""

    status_code = 409

    def __init__(self, message: str, entity: str, entity_id: Any, status: Optional[str] = None):
        super().__init__(message, {"entity": entity, "id": str(entity_id), "status": status})
        self.entity = entity
        self.entity_id = entity_id
        self.status = status


class InsufficientStockError(WorkflowError):
    status_code = 409

    def __init__(self, inventory_item_id: int, item_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient quantity for {item_name}. Available: {available}, Requested: {requested}",
            {
                "inventory_item_id": inventory_item_id,
                "item_name": item_name,
                "requested": requested,
                "available": available,
            },
        )
        self.inventory_item_id = inventory_item_id
        self.item_name = item_name
        self.requested = requested
        self.available = available
