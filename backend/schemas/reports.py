from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime
from models.reports import ReportType
from schemas.inventory_items import _require_text

class DashboardStats(BaseModel):
    total_items: int
    total_quantity: int
    total_value: Decimal
    total_categories: int
    total_users: int
    pending_requests: int
    pending_release_requests: int


class ReceivingReportCreate(BaseModel):
    inventory_item_ids: List[int] = Field(min_length=1)
    date_range: Optional[str] = None
    access_granted_to: List[int] = []


class ReportCreate(BaseModel):
    name: str
    report_type: ReportType = ReportType.CUSTOM
    date_range: str
    data: Dict[str, Any]
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    total_quantity: int = Field(default=0, ge=0)
    access_granted_to: List[int] = []

    @field_validator('name', 'date_range')
    @classmethod
    def validate_required_text(cls, v):
        return _require_text(v)


class ReportAccessGrant(BaseModel):
    user_ids: List[int] = Field(min_length=1)


class Report(BaseModel):
    id: int
    name: str
    report_type: ReportType
    date_range: str
    data: Dict[str, Any]
    total_amount: Decimal
    total_quantity: int
    created_by: Optional[int] = None
    access_granted_to: List[int] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
