from pydantic import BaseModel, field_validator
from typing import Optional, Dict, Any
from datetime import datetime
from models.category_history import CategoryChangeType

class CategoryCreate(BaseModel):
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

class Category(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CategoryHistoryEntry(BaseModel):
    id: int
    category_id: int
    item_id: Optional[int] = None
    change_type: CategoryChangeType
    previous_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    changed_by: Optional[int] = None
    changed_at: datetime

    class Config:
        from_attributes = True
