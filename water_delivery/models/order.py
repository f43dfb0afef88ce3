"""
Order and order item models.

An order moves through a small state machine. Reaching
COMPLETED is what posts the sale to the customer's ledger and
moves containers, so the transition rules live here next to
the data they guard.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.errors import InvalidStateTransitionError
from water_delivery.models.base import Base
from water_delivery.models.enums import OrderStatus, PaymentMethod


# Moves allowed out of the open states. Terminal states map to
# an empty set: the only accepted request is the same status again.
VALID_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.SCHEDULED: {
        OrderStatus.PENDING,
        OrderStatus.IN_PROGRESS,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PENDING: {
        OrderStatus.SCHEDULED,
        OrderStatus.IN_PROGRESS,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.IN_PROGRESS: {
        OrderStatus.PENDING,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


@dataclass(frozen=True)
class StatusTransition:
    """Outcome of asking an order to move from one status to another.

    fulfil: the ledger, wallet and inventory effects must be applied.
    frozen: the order is terminal and must not be modified at all.
    """
    previous: OrderStatus
    new_status: OrderStatus
    fulfil: bool
    frozen: bool


def plan_transition(
    previous: OrderStatus, requested: OrderStatus | None
) -> StatusTransition:
    """
    Decide what a status request means for an order.

    Pure function of (previous, requested). Side effects are only
    planned for the edge that enters COMPLETED, so a retried or
    repeated completion can never post the sale twice.
    """
    target = requested or previous

    if previous in TERMINAL_STATUSES:
        if target != previous:
            raise InvalidStateTransitionError(
                f"Cannot transition from {previous.value} to {target.value}"
            )
        return StatusTransition(previous, previous, fulfil=False, frozen=True)

    if target != previous and target not in VALID_TRANSITIONS[previous]:
        raise InvalidStateTransitionError(
            f"Cannot transition from {previous.value} to {target.value}"
        )

    return StatusTransition(
        previous,
        target,
        fulfil=target == OrderStatus.COMPLETED,
        frozen=False,
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    driver_id: Mapped[int | None] = mapped_column(
        ForeignKey("drivers.id"), nullable=True, index=True
    )
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status_enum", create_constraint=True),
        nullable=False,
        default=OrderStatus.SCHEDULED,
    )
    delivery_charge: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    cash_collected: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method_enum", create_constraint=True),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    delivered_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    customer: Mapped["Customer"] = relationship()
    driver: Mapped["Driver | None"] = relationship()
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<Order #{self.id} {self.total_amount} ({self.status.value})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Snapshot, immune to later product price changes
    price_at_time: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    filled_given: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    empty_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    damaged_returned: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()

    @property
    def net_bottle_change(self) -> int:
        return self.filled_given - self.empty_taken

    def __repr__(self) -> str:
        return f"<OrderItem product={self.product_id} x{self.quantity}>"
