import enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from models.inventory_requests import RequestStatus, RequestType
from schemas.inventory_items import ItemPayload, InventoryItem, _require_text
from schemas.users import UserSummary


class DenialReason(str, enum.Enum):
    WRONG_ITEM_NAME = "wrong_item_name"
    WRONG_LOCATION = "wrong_location"
    WRONG_QUANTITY = "wrong_quantity"
    WRONG_UNIT_OF_MEASURE = "wrong_unit_of_measure"
    WRONG_UNIT_COST = "wrong_unit_cost"
    WRONG_AMOUNT = "wrong_amount"
    OTHER = "other"


class ItemDecision(BaseModel):
    index: int = Field(ge=0)
    status: Literal["approved", "denied"]
    reason: Optional[DenialReason] = None


class ReviewDecision(BaseModel):
    """Either a blanket status, or one decision per item.

    ``status`` is the reviewer's intent only; the stored request status is
    always derived from the per-item outcomes.
    """
    status: Literal["approved", "denied", "partial"]
    item_decisions: Optional[List[ItemDecision]] = None


class BulkItemPayload(ItemPayload):
    supplier: Optional[str] = None

    # Same name as the parent's validator so this one replaces it; supplier
    # may be filled from the request-level supplier instead
    @field_validator('unit_of_measure', 'item_name', 'location')
    @classmethod
    def validate_required_text(cls, v):
        return _require_text(v)

    @field_validator('supplier')
    @classmethod
    def blank_supplier_is_none(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()


class BulkRequestCreate(BaseModel):
    items: List[BulkItemPayload]
    supplier: Optional[str] = None


class ItemStatus(BaseModel):
    status: Literal["approved", "denied"]
    reason: Optional[str] = None


class InventoryRequest(BaseModel):
    id: int
    employee_id: int
    request_type: RequestType
    items: List[Dict[str, Any]]
    item_statuses: Optional[Dict[str, ItemStatus]] = None
    status: RequestStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    employee: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ReviewResult(BaseModel):
    request_id: int
    status: RequestStatus
    approved_count: int
    denied_count: int
    created_items: List[InventoryItem] = []
