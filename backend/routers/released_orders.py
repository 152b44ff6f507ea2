from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from schemas.released_orders import (
    GenerateReleaseRequest,
    InsufficientStockNotice,
    ReleasedOrderReport,
    ReleasedOrderRequest,
    ReleasedOrderRequestCreate,
    ReleaseReviewDecision,
    ReleaseReviewResult,
)
from schemas.users import Actor
from utils.auth_utils import get_current_actor
from utils.report_export import XLSX_MEDIA_TYPE, build_release_workbook, build_reports_summary
from crud import released_orders as crud_released_orders

router = APIRouter(prefix="/released-orders", tags=["Released Orders"])


@router.post("/requests", response_model=ReleasedOrderRequest, status_code=status.HTTP_201_CREATED)
def submit_release_request(
    payload: ReleasedOrderRequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_released_orders.submit_release_request(
        db,
        actor,
        department_office=payload.department_office,
        items=payload.items,
        rs_no=payload.rs_no,
        is_partial_release=payload.is_partial_release,
    )


@router.get("/requests", response_model=List[ReleasedOrderRequest])
def read_release_requests(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_released_orders.get_release_requests(db, actor)


@router.get("/requests/pending", response_model=List[ReleasedOrderRequest])
def read_pending_release_requests(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_released_orders.get_release_requests(db, actor, pending_only=True)


@router.get("/requests/mine", response_model=List[ReleasedOrderRequest])
def read_my_release_requests(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_released_orders.get_my_release_requests(db, actor)


@router.post("/requests/{request_id}/review", response_model=ReleaseReviewResult)
def review_release_request(
    request_id: int,
    decision: ReleaseReviewDecision,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return crud_released_orders.review_release_request(db, actor, request_id, decision)


@router.post("/generate", response_model=ReleasedOrderReport, status_code=status.HTTP_201_CREATED)
def generate_release(
    params: GenerateReleaseRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """
    Deduct stock and produce a Supplies Release Order.

    Admins may pass the items directly; otherwise ``request_id`` names an
    approved release request.
    """
    return crud_released_orders.generate_release(db, actor, params)


@router.post("/insufficient-stock")
def notify_insufficient_stock(
    notice: InsufficientStockNotice,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    notified = crud_released_orders.notify_insufficient_stock(
        db, actor, notice.item_name, notice.requested, notice.available
    )
    return {"message": "Admins notified", "notified": notified}


@router.get("/reports", response_model=List[ReleasedOrderReport])
def read_reports(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_released_orders.get_released_order_reports(db, actor)


@router.get("/reports/export")
def export_reports(db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    reports = crud_released_orders.get_released_order_reports(db, actor)
    headers = {'Content-Disposition': 'attachment; filename="released_orders.xlsx"'}
    return StreamingResponse(build_reports_summary(reports), media_type=XLSX_MEDIA_TYPE, headers=headers)


@router.get("/reports/{report_id}", response_model=ReleasedOrderReport)
def read_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    return crud_released_orders.get_released_order_report(db, actor, report_id)


@router.get("/reports/{report_id}/export")
def export_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_current_actor)):
    report = crud_released_orders.get_released_order_report(db, actor, report_id)
    headers = {'Content-Disposition': f'attachment; filename="{report.sro_no}.xlsx"'}
    return StreamingResponse(build_release_workbook(report), media_type=XLSX_MEDIA_TYPE, headers=headers)
