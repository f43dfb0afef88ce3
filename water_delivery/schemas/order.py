"""
Pydantic schemas for order operations.

Quantities and amounts are validated here, before any
transaction is opened.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from water_delivery.models.enums import OrderStatus, PaymentMethod


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    # Falls back to the product's base price when omitted
    price: Decimal | None = Field(default=None, ge=0, decimal_places=2)


class OrderItemUpdate(OrderItemCreate):
    filled_given: int = Field(default=0, ge=0)
    empty_taken: int = Field(default=0, ge=0)
    damaged_returned: int = Field(default=0, ge=0)


class OrderCreate(BaseModel):
    customer_id: int
    driver_id: int | None = None
    scheduled_date: datetime
    status: OrderStatus = OrderStatus.SCHEDULED
    delivery_charge: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: list[OrderItemCreate] = Field(min_length=1)

    @model_validator(mode="after")
    def must_start_open(self) -> "OrderCreate":
        if self.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            raise ValueError("orders must be created in an open status")
        return self


class OrderUpdate(BaseModel):
    """A partial edit. Fields left as None are not touched."""
    driver_id: int | None = None
    scheduled_date: datetime | None = None
    status: OrderStatus | None = None
    delivery_charge: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    discount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    cash_collected: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    payment_method: PaymentMethod | None = None
    delivered_at: datetime | None = None
    items: list[OrderItemUpdate] | None = Field(default=None, min_length=1)


class CompleteOrderRequest(BaseModel):
    """
    The driver's delivery report for an order.

    Fields left out keep the values the order already holds.
    """
    items: list[OrderItemUpdate] | None = Field(default=None, min_length=1)
    cash_collected: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    payment_method: PaymentMethod | None = None
    delivered_at: datetime | None = None

    def to_update(self) -> OrderUpdate:
        return OrderUpdate(
            status=OrderStatus.COMPLETED,
            **self.model_dump(exclude_none=True, exclude={"items"}),
            items=self.items,
        )


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    price_at_time: Decimal
    filled_given: int
    empty_taken: int
    damaged_returned: int

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    customer_id: int
    driver_id: int | None
    scheduled_date: datetime
    status: OrderStatus
    delivery_charge: Decimal
    discount: Decimal
    total_amount: Decimal
    cash_collected: Decimal
    payment_method: PaymentMethod
    delivered_at: datetime | None
    items: list[OrderItemResponse]
    created_at: datetime

    model_config = {"from_attributes": True}
