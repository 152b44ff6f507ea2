from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.reports import DashboardStats
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from crud.dashboard import get_dashboard_stats

router = APIRouter(prefix="/stats", tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardStats)
def read_dashboard(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return get_dashboard_stats(db)
