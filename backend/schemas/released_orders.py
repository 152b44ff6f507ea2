from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Literal
from decimal import Decimal
from datetime import datetime
from models.inventory_requests import RequestStatus
from schemas.inventory_requests import ItemStatus
from schemas.inventory_items import _require_text
from schemas.users import UserSummary


class ReleasedItemPayload(BaseModel):
    inventory_item_id: int
    quantity: int = Field(gt=0)
    unit: str
    particulars: str # item name as printed on the release order
    unit_cost: Decimal = Field(default=Decimal("0"), ge=0)
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    remarks: Optional[str] = None

    @field_validator('unit', 'particulars')
    @classmethod
    def validate_required_text(cls, v):
        return _require_text(v)


class ReleasedOrderRequestCreate(BaseModel):
    department_office: str
    rs_no: Optional[str] = None
    is_partial_release: bool = False
    items: List[ReleasedItemPayload]


class ReleaseItemDecision(BaseModel):
    index: int = Field(ge=0)
    status: Literal["approved", "denied"]
    reason: Optional[str] = Field(default=None, max_length=500)


class ReleaseReviewDecision(BaseModel):
    status: Literal["approved", "denied", "partial"]
    item_decisions: Optional[List[ReleaseItemDecision]] = None


class GenerateReleaseRequest(BaseModel):
    """Employee path: ``request_id``. Admin-direct path: ``items`` plus department details."""
    request_id: Optional[int] = None
    items: Optional[List[ReleasedItemPayload]] = None
    department_office: Optional[str] = None
    rs_no: Optional[str] = None
    is_partial_release: bool = False
    received_by: Optional[str] = None


class ReleasedOrderRequest(BaseModel):
    id: int
    employee_id: int
    department_office: str
    rs_no: Optional[str] = None
    is_partial_release: bool
    items: List[Dict[str, Any]]
    item_statuses: Optional[Dict[str, ItemStatus]] = None
    status: RequestStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    report_id: Optional[int] = None
    created_at: Optional[datetime] = None
    employee: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ReleasedOrderReport(BaseModel):
    id: int
    sro_no: str
    rs_no: Optional[str] = None
    department_office: str
    is_partial_release: bool
    request_id: Optional[int] = None
    items: List[Dict[str, Any]]
    total_amount: Decimal
    released_by: Optional[int] = None
    received_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReleaseReviewResult(BaseModel):
    request_id: int
    status: RequestStatus
    approved_count: int
    denied_count: int


class InsufficientStockNotice(BaseModel):
    item_name: str
    requested: int = Field(gt=0)
    available: int = Field(ge=0)
