"""
Order API endpoints.

Completing an order is the write path that posts to the
customer's ledger and moves containers; the endpoint only
commits or rolls back around OrderService.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from water_delivery.api.dependencies import get_actor
from water_delivery.api.errors import to_http_exception
from water_delivery.authorization import Actor
from water_delivery.models.base import get_db
from water_delivery.services.order_service import OrderService
from water_delivery.schemas.order import (
    CompleteOrderRequest,
    OrderCreate,
    OrderResponse,
    OrderUpdate,
)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    request: OrderCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """Place an order with a price snapshot for every item."""
    service = OrderService(db)
    try:
        order = service.create_order(request, actor)
        db.commit()
        return order
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    service = OrderService(db)
    try:
        return service.get_order(order_id, actor)
    except ValueError as e:
        raise to_http_exception(e)


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    request: OrderUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """
    Edit an order. Moving it to COMPLETED fulfils it; edits to
    completed or cancelled orders are refused.
    """
    service = OrderService(db)
    try:
        order = service.update_order(order_id, request, actor)
        db.commit()
        return order
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)


@router.post("/{order_id}/complete", response_model=OrderResponse)
def complete_order(
    order_id: int,
    request: CompleteOrderRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """
    Record a delivery. Safe to retry: a second completion of the
    same order returns it without posting anything again.
    """
    service = OrderService(db)
    try:
        order = service.complete_order(order_id, request, actor)
        db.commit()
        return order
    except ValueError as e:
        db.rollback()
        raise to_http_exception(e)
