from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from schemas.categories import Category, CategoryCreate, CategoryHistoryEntry
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud import categories as crud_categories

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("/", response_model=List[Category])
def read_categories(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_categories.get_categories(db)


@router.post("/", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_categories.create_category(db, actor, payload.name)


@router.get("/{category_id}/history", response_model=List[CategoryHistoryEntry])
def read_category_history(category_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    """Every change to items in a category, newest first."""
    return crud_categories.get_category_history(db, category_id)
