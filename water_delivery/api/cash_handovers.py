"""
Cash handover API endpoints.

Driver routes are scoped to the caller's own driver id; admin
routes cover verification, listing and dashboard statistics.
Static paths are declared before /{handover_id}.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from water_delivery.api.dependencies import get_actor
from water_delivery.api.errors import to_http_exception
from water_delivery.authorization import Actor
from water_delivery.models.base import get_db
from water_delivery.models.enums import CashHandoverStatus
from water_delivery.services.cash_handover_service import CashHandoverService
from water_delivery.services.cash_summary_service import CashSummaryService
from water_delivery.schemas.cash_handover import (
    CashStats,
    DaySummary,
    HandoverDetail,
    HandoverFilter,
    HandoverPage,
    HandoverResponse,
    HandoverSubmit,
    HandoverVerify,
    TrendPoint,
)

router = APIRouter(prefix="/cash-handovers", tags=["Cash Management"])


# --- Driver endpoints ---

@router.get("/driver/day-summary", response_model=DaySummary)
def get_day_summary(
    day: date | None = Query(default=None, alias="date"),
    driver_id: int | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """
    Preview of the expected handover. Drivers get their own day;
    admins pass driver_id.
    """
    driver_id = driver_id or actor.driver_id
    if driver_id is None:
        raise HTTPException(status_code=400, detail="driver_id is required")

    service = CashSummaryService(db)
    try:
        return service.preview_day(actor, driver_id, day or date.today())
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/driver/submit", response_model=HandoverResponse)
def submit_handover(
    request: HandoverSubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Create or resubmit the day's handover while it is still PENDING."""
    service = CashHandoverService(db)
    try:
        handover = service.submit(request, actor)
        db.commit()
        return handover
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)


@router.get("/driver/history", response_model=list[HandoverResponse])
def get_driver_history(
    driver_id: int | None = None,
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    driver_id = driver_id or actor.driver_id
    if driver_id is None:
        raise HTTPException(status_code=400, detail="driver_id is required")

    service = CashHandoverService(db)
    try:
        return service.get_driver_history(actor, driver_id, limit)
    except ValueError as e:
        raise to_http_exception(e)


# --- Admin endpoints ---

@router.get("", response_model=HandoverPage)
def list_handovers(
    status: CashHandoverStatus | None = None,
    driver_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    filters = HandoverFilter(
        status=status,
        driver_id=driver_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    service = CashHandoverService(db)
    try:
        return service.list_handovers(filters, actor)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/stats", response_model=CashStats)
def get_stats(
    day: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    service = CashHandoverService(db)
    try:
        return service.get_stats(actor, day)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/trends", response_model=list[TrendPoint])
def get_trends(
    days: int | None = Query(default=None, ge=1, le=365),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    service = CashHandoverService(db)
    try:
        return service.get_trends(actor, days)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{handover_id}", response_model=HandoverDetail)
def get_handover(
    handover_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    service = CashHandoverService(db)
    try:
        return service.get_handover(handover_id, actor)
    except ValueError as e:
        raise to_http_exception(e)


@router.patch("/{handover_id}/verify", response_model=HandoverResponse)
def verify_handover(
    handover_id: int,
    request: HandoverVerify,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """One-way move out of PENDING. Later calls are refused with 409."""
    service = CashHandoverService(db)
    try:
        handover = service.verify(handover_id, request, actor)
        db.commit()
        return handover
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)
