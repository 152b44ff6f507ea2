from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

REQUIRED_TEXT_FIELDS = ('supplier', 'unit_of_measure', 'item_name', 'location')


def _require_text(v: str) -> str:
    if v is None or not str(v).strip():
        raise ValueError("must not be empty")
    return str(v).strip()


class ItemPayload(BaseModel):
    """An item as submitted for addition to inventory."""
    supplier: str
    quantity: int = Field(gt=0)
    unit_of_measure: str = "pcs"
    item_name: str
    location: str
    unit_cost: Decimal = Field(ge=0)
    # Accepted for display only; the stored amount is always quantity * unit_cost
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    remarks: Optional[str] = None
    category_name: Optional[str] = None

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def validate_required_text(cls, v):
        return _require_text(v)

    @field_validator('category_name')
    @classmethod
    def blank_category_is_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class InventoryItemCreate(ItemPayload):
    pass


class BulkInventoryItemCreate(BaseModel):
    items: List[InventoryItemCreate]


class InventoryItemUpdate(BaseModel):
    supplier: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    unit_of_measure: Optional[str] = None
    item_name: Optional[str] = None
    location: Optional[str] = None
    unit_cost: Optional[Decimal] = Field(default=None, ge=0)
    remarks: Optional[str] = None
    category_name: Optional[str] = None
    # amount is system-calculated, not updated directly

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def validate_required_text(cls, v):
        if v is None:
            return v
        return _require_text(v)


class InventoryItem(BaseModel):
    id: int
    supplier: str
    date_received: Optional[datetime] = None
    quantity: int
    unit_of_measure: str
    item_name: str
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    location: str
    unit_cost: Decimal
    amount: Decimal
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkInventoryItemResult(BaseModel):
    items: List[InventoryItem]
    count: int
