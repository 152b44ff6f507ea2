from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models.inventory_requests import RequestStatus, RequestType
from schemas.inventory_items import InventoryItemCreate
from schemas.inventory_requests import (
    BulkRequestCreate,
    InventoryRequest,
    ReviewDecision,
    ReviewResult,
)
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud import inventory_requests as crud_requests

router = APIRouter(prefix="/requests", tags=["Inventory Requests"])


@router.get("/", response_model=List[InventoryRequest])
def read_requests(
    status: Optional[RequestStatus] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Admins see every request; employees see their own."""
    return crud_requests.get_inventory_requests(db, actor, status=status)


@router.get("/{request_id}", response_model=InventoryRequest)
def read_request(request_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_requests.get_inventory_request(db, actor, request_id)


@router.post("/single", response_model=InventoryRequest, status_code=status.HTTP_201_CREATED)
def submit_single_request(
    item: InventoryItemCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_requests.submit_inventory_request(db, actor, [item], request_type=RequestType.SINGLE)


@router.post("/bulk", response_model=InventoryRequest, status_code=status.HTTP_201_CREATED)
def submit_bulk_request(
    payload: BulkRequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Submit several items at once; ``supplier`` fills in items that omit one."""
    return crud_requests.submit_inventory_request(
        db, actor, payload.items, request_type=RequestType.BULK, supplier=payload.supplier
    )


@router.post("/{request_id}/review", response_model=ReviewResult)
def review_request(
    request_id: int,
    decision: ReviewDecision,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_requests.review_inventory_request(db, actor, request_id, decision)
