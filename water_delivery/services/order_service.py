"""
Order service: placement, edits, and the fulfillment transaction.

Completing an order is the one write path that touches money
and containers. Inside the caller's transaction it:
1. Persists item and total changes
2. Posts the sale (and the payment, if cash was collected)
   to the customer's ledger
3. Moves each item's net containers into the bottle wallet
4. Adjusts depot filled/empty stock

The side effects run only on the edge into COMPLETED, decided by
plan_transition on the order row read under a lock. A retried
completion finds the order already COMPLETED and does nothing.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from water_delivery.authorization import Actor, require_admin, require_admin_or_driver
from water_delivery.errors import (
    AuthorizationError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
    customer_not_found,
    driver_not_found,
    order_not_found,
    product_not_found,
)
from water_delivery.models import Customer, Driver, Order, OrderItem, Product
from water_delivery.models.order import plan_transition
from water_delivery.schemas.order import (
    CompleteOrderRequest,
    OrderCreate,
    OrderItemCreate,
    OrderUpdate,
)
from water_delivery.services.inventory_service import InventoryService
from water_delivery.services.ledger_service import LedgerService
from water_delivery.services.wallet_service import BottleWalletService

logger = logging.getLogger(__name__)

# Plain fields an edit may overwrite; None means "leave as is"
EDITABLE_FIELDS = (
    "driver_id",
    "scheduled_date",
    "delivery_charge",
    "discount",
    "cash_collected",
    "payment_method",
    "delivered_at",
)

EXCHANGE_COUNTS = {"filled_given", "empty_taken", "damaged_returned"}


class OrderService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.wallet_service = BottleWalletService(db)
        self.inventory_service = InventoryService(db)

    # --- Helpers ---

    def _get_order_for_update(self, order_id: int) -> Order:
        """
        Read the order under a row lock, fresh from the database.

        Two concurrent completions of the same order serialize
        here; the second one sees COMPLETED.
        """
        order = self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if not order:
            raise NotFoundError(order_not_found(order_id))
        return order

    def _validate_driver(self, driver_id: int | None) -> None:
        if driver_id is not None and not self.db.get(Driver, driver_id):
            raise NotFoundError(driver_not_found(driver_id))

    def _load_products(
        self, items: Sequence[OrderItemCreate]
    ) -> dict[int, Product]:
        """Fetch every referenced product, failing on the first missing one."""
        product_ids = {item.product_id for item in items}
        products = self.db.execute(
            select(Product).where(Product.id.in_(product_ids))
        ).scalars().all()
        products_by_id = {p.id: p for p in products}

        for item in items:
            if item.product_id not in products_by_id:
                raise NotFoundError(product_not_found(item.product_id))
        return products_by_id

    def _build_items(
        self,
        items: Sequence[OrderItemCreate],
        products: dict[int, Product],
    ) -> list[OrderItem]:
        order_items = []
        for item in items:
            price = (
                item.price if item.price is not None
                else products[item.product_id].base_price
            )
            counts = item.model_dump(include=EXCHANGE_COUNTS)
            order_items.append(OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                price_at_time=price,
                **counts,
            ))
        return order_items

    @staticmethod
    def _is_replay(order: Order, request: OrderUpdate) -> bool:
        """True when every field the request sets already matches the order."""
        for field in EDITABLE_FIELDS:
            value = getattr(request, field)
            if value is not None and value != getattr(order, field):
                return False

        if request.items is None:
            return True
        if len(request.items) != len(order.items):
            return False
        for requested, stored in zip(request.items, order.items):
            if requested.price is not None and requested.price != stored.price_at_time:
                return False
            if (
                requested.product_id, requested.quantity, requested.filled_given,
                requested.empty_taken, requested.damaged_returned,
            ) != (
                stored.product_id, stored.quantity, stored.filled_given,
                stored.empty_taken, stored.damaged_returned,
            ):
                return False
        return True

    @staticmethod
    def _compute_total(
        items: Sequence[OrderItem], delivery_charge: Decimal, discount: Decimal
    ) -> Decimal:
        subtotal = sum(
            (item.price_at_time * item.quantity for item in items),
            Decimal("0"),
        )
        total = subtotal + delivery_charge - discount
        if total < 0:
            raise ValidationError(
                f"Discount {discount} exceeds the order amount "
                f"{subtotal + delivery_charge}"
            )
        return total

    # --- Placement ---

    def create_order(self, request: OrderCreate, actor: Actor) -> Order:
        """
        Create an open order with a price snapshot for every item.

        Recurring orders are generated elsewhere; this is the manual
        placement path.
        """
        require_admin(actor)

        if not self.db.get(Customer, request.customer_id):
            raise NotFoundError(customer_not_found(request.customer_id))
        self._validate_driver(request.driver_id)

        products = self._load_products(request.items)
        items = self._build_items(request.items, products)

        order = Order(
            customer_id=request.customer_id,
            driver_id=request.driver_id,
            scheduled_date=request.scheduled_date,
            status=request.status,
            delivery_charge=request.delivery_charge,
            discount=request.discount,
            payment_method=request.payment_method,
            total_amount=self._compute_total(
                items, request.delivery_charge, request.discount
            ),
            items=items,
        )
        self.db.add(order)
        self.db.flush()

        logger.info(
            "Order created",
            extra={
                "order_id": order.id,
                "customer_id": order.customer_id,
                "total_amount": str(order.total_amount),
            },
        )
        return order

    # --- Edits and completion ---

    def update_order(
        self, order_id: int, request: OrderUpdate, actor: Actor
    ) -> Order:
        """
        Apply an edit and, on the edge into COMPLETED, fulfil the order.

        Terminal orders are frozen. A request that only repeats what
        the order already holds (a retried completion) is a silent
        no-op; anything that would change it is refused.
        """
        order = self._get_order_for_update(order_id)
        require_admin_or_driver(actor, order.driver_id)

        transition = plan_transition(order.status, request.status)

        if transition.frozen:
            if not self._is_replay(order, request):
                logger.warning(
                    "Edit of terminal order refused",
                    extra={"order_id": order.id, "status": order.status.value},
                )
                raise InvalidStateTransitionError(
                    f"Order {order.id} is {order.status.value} "
                    f"and can no longer be edited"
                )
            logger.info(
                "Repeated status request ignored",
                extra={"order_id": order.id, "status": order.status.value},
            )
            return order

        if request.driver_id is not None and request.driver_id != order.driver_id:
            if not actor.is_admin:
                raise AuthorizationError("Only admins can reassign orders")
            self._validate_driver(request.driver_id)

        # Validate everything before the first write
        products = self._load_products(request.items) if request.items else {}

        for field in EDITABLE_FIELDS:
            value = getattr(request, field)
            if value is not None:
                setattr(order, field, value)

        if request.items:
            order.items = self._build_items(request.items, products)

        order.total_amount = self._compute_total(
            order.items, order.delivery_charge, order.discount
        )
        order.status = transition.new_status
        if transition.fulfil and order.delivered_at is None:
            order.delivered_at = datetime.utcnow()

        # Final total must be in place before the sale is posted
        self.db.flush()

        if transition.fulfil:
            self._fulfil(order)

        return order

    def complete_order(
        self, order_id: int, request: CompleteOrderRequest, actor: Actor
    ) -> Order:
        """The driver's delivery report: final items, cash, and COMPLETED."""
        return self.update_order(order_id, request.to_update(), actor)

    def _fulfil(self, order: Order) -> None:
        reference = str(order.id)

        self.ledger_service.append_entry(
            order.customer_id,
            -order.total_amount,
            f"Order #{order.id} Sale",
            reference,
        )
        if order.cash_collected > 0:
            self.ledger_service.append_entry(
                order.customer_id,
                order.cash_collected,
                f"Order #{order.id} Payment",
                reference,
            )

        for item in order.items:
            self.wallet_service.adjust(
                order.customer_id, item.product_id, item.net_bottle_change
            )
            self.inventory_service.apply_delivery(
                item.product_id, item.filled_given, item.empty_taken
            )

        self.db.flush()

        logger.info(
            "Order completed",
            extra={
                "order_id": order.id,
                "customer_id": order.customer_id,
                "driver_id": order.driver_id,
                "total_amount": str(order.total_amount),
                "cash_collected": str(order.cash_collected),
                "payment_method": order.payment_method.value,
            },
        )

    # --- Reads ---

    def get_order(self, order_id: int, actor: Actor) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError(order_not_found(order_id))
        require_admin_or_driver(actor, order.driver_id)
        return order
