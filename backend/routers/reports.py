from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models.reports import ReportType
from schemas.reports import ReceivingReportCreate, Report, ReportAccessGrant, ReportCreate
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from utils.report_export import XLSX_MEDIA_TYPE, build_receiving_workbook
from crud import reports as crud_reports

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/", response_model=List[Report])
def read_reports(
    report_type: Optional[ReportType] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_reports.get_reports(db, actor, report_type=report_type)


@router.post("/", response_model=Report, status_code=status.HTTP_201_CREATED)
def create_report(payload: ReportCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_reports.create_report(db, actor, payload)


@router.post("/receiving", response_model=Report, status_code=status.HTTP_201_CREATED)
def create_receiving_report(
    payload: ReceivingReportCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Snapshot the selected inventory items, with their total amount and quantity."""
    return crud_reports.create_receiving_report(
        db,
        actor,
        payload.inventory_item_ids,
        date_range=payload.date_range,
        access_granted_to=payload.access_granted_to,
    )


@router.get("/{report_id}", response_model=Report)
def read_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_reports.get_report(db, actor, report_id)


@router.post("/{report_id}/access", response_model=Report)
def grant_report_access(
    report_id: int,
    grant: ReportAccessGrant,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_reports.grant_report_access(db, actor, report_id, grant.user_ids)


@router.get("/{report_id}/export")
def export_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    report = crud_reports.get_report(db, actor, report_id)
    headers = {'Content-Disposition': f'attachment; filename="receiving_report_{report.id}.xlsx"'}
    return StreamingResponse(build_receiving_workbook(report), media_type=XLSX_MEDIA_TYPE, headers=headers)
