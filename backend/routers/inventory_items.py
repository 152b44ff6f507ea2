from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.inventory_items import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    BulkInventoryItemCreate,
    BulkInventoryItemResult,
)
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud import inventory_items as crud_inventory_items

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = logging.getLogger("inventory_items")


@router.get("/", response_model=List[InventoryItem])
def read_inventory_items(
    skip: int = 0,
    limit: int = 100,
    category_id: Optional[int] = None, # Allow filtering by category
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Retrieve a list of inventory items, with optional filtering by category."""
    return crud_inventory_items.get_inventory_items(db, category_id=category_id, skip=skip, limit=limit)


@router.get("/{item_id}", response_model=InventoryItem)
def read_inventory_item(item_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Retrieve a single inventory item by ID."""
    db_item = crud_inventory_items.get_inventory_item(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item


@router.post("/", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item: InventoryItemCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Add an item directly (admins only)."""
    return crud_inventory_items.create_inventory_item(db, actor, item)


@router.post("/bulk", response_model=BulkInventoryItemResult, status_code=status.HTTP_201_CREATED)
def bulk_create_inventory_items(
    payload: BulkInventoryItemCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    created = crud_inventory_items.bulk_create_inventory_items(db, actor, payload.items)
    return BulkInventoryItemResult(items=created, count=len(created))


@router.patch("/{item_id}", response_model=InventoryItem)
def update_inventory_item(
    item_id: int,
    item: InventoryItemUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_inventory_items.update_inventory_item(db, actor, item_id, item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    crud_inventory_items.delete_inventory_item(db, actor, item_id)
    return None
