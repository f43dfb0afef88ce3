"""
Driver expense endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from water_delivery.api.dependencies import get_actor
from water_delivery.api.errors import to_http_exception
from water_delivery.authorization import Actor
from water_delivery.models.base import get_db
from water_delivery.services.expense_service import ExpenseService
from water_delivery.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseReview,
)

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseResponse, status_code=201)
def log_expense(
    request: ExpenseCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    service = ExpenseService(db)
    try:
        expense = service.log_expense(request, actor)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    driver_id: int | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    driver_id = driver_id or actor.driver_id
    if driver_id is None:
        raise HTTPException(status_code=400, detail="driver_id is required")

    try:
        return ExpenseService(db).list_driver_expenses(actor, driver_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.patch("/{expense_id}/review", response_model=ExpenseResponse)
def review_expense(
    expense_id: int,
    request: ExpenseReview,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Approve or reject a pending expense."""
    service = ExpenseService(db)
    try:
        expense = service.review_expense(expense_id, request, actor)
        db.commit()
        return expense
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)
