"""
Expected-cash aggregator.

Read-only. For one driver and one calendar day it sums the cash
collected on completed cash orders, subtracts cash-on-hand
expenses that were not rejected, and reports the day's order and
bottle counters. Nothing is cached: every call queries live rows,
so two calls with no writes in between return the same summary.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from water_delivery.authorization import Actor, require_admin_or_driver
from water_delivery.errors import NotFoundError, driver_not_found
from water_delivery.models import (
    Customer,
    Driver,
    Expense,
    ExpensePaymentMethod,
    ExpenseStatus,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
)
from water_delivery.schemas.cash_handover import CashOrderLine, DaySummary

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalise a driver-returned SUM to a 2-place Decimal."""
    return Decimal(str(value or 0)).quantize(CENTS)


def day_window(day: date) -> tuple[datetime, datetime]:
    """[00:00:00.000, next midnight) for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class CashSummaryService:

    def __init__(self, db: Session):
        self.db = db

    def _orders_on_day(self, driver_id: int, day: date):
        start, end = day_window(day)
        return (
            Order.driver_id == driver_id,
            Order.scheduled_date >= start,
            Order.scheduled_date < end,
        )

    def sum_cash_expenses(
        self, driver_id: int, day: date, *, pending_only: bool = False
    ) -> Decimal:
        """
        Cash-on-hand expenses for the day. PENDING and APPROVED both
        count: the driver has already spent the cash either way.
        """
        start, end = day_window(day)
        conditions = [
            Expense.driver_id == driver_id,
            Expense.date >= start,
            Expense.date < end,
            Expense.payment_method == ExpensePaymentMethod.CASH_ON_HAND,
        ]
        if pending_only:
            conditions.append(Expense.status == ExpenseStatus.PENDING)
        else:
            conditions.append(Expense.status != ExpenseStatus.REJECTED)

        total = self.db.execute(
            select(func.coalesce(func.sum(Expense.amount), 0)).where(*conditions)
        ).scalar()
        return to_money(total)

    def summarize_day(self, driver_id: int, day: date) -> DaySummary:
        """Compute the driver's day; used by preview and by submission."""
        if not self.db.get(Driver, driver_id):
            raise NotFoundError(driver_not_found(driver_id))

        on_day = self._orders_on_day(driver_id, day)

        status_counts = dict(
            self.db.execute(
                select(Order.status, func.count(Order.id))
                .where(*on_day)
                .group_by(Order.status)
            ).all()
        )
        total_orders = sum(status_counts.values())
        completed_orders = status_counts.get(OrderStatus.COMPLETED, 0)

        cash_rows = self.db.execute(
            select(Order.id, Customer.name, Order.cash_collected)
            .join(Customer, Order.customer_id == Customer.id)
            .where(
                *on_day,
                Order.status == OrderStatus.COMPLETED,
                Order.payment_method == PaymentMethod.CASH,
            )
            .order_by(Order.id)
        ).all()
        cash_orders = [
            CashOrderLine(id=row.id, customer_name=row.name, amount=to_money(row.cash_collected))
            for row in cash_rows
        ]

        bottles_given, bottles_taken = self.db.execute(
            select(
                func.coalesce(func.sum(OrderItem.filled_given), 0),
                func.coalesce(func.sum(OrderItem.empty_taken), 0),
            )
            .join(Order, OrderItem.order_id == Order.id)
            .where(*on_day, Order.status == OrderStatus.COMPLETED)
        ).one()

        gross_cash = sum((line.amount for line in cash_orders), Decimal("0"))
        expenses_amount = self.sum_cash_expenses(driver_id, day)

        return DaySummary(
            driver_id=driver_id,
            date=day,
            total_orders=total_orders,
            completed_orders=completed_orders,
            cash_orders=len(cash_orders),
            gross_cash=to_money(gross_cash),
            expenses_amount=expenses_amount,
            expected_cash=to_money(gross_cash - expenses_amount),
            bottles_given=int(bottles_given),
            bottles_taken=int(bottles_taken),
            orders_paid_in_cash=cash_orders,
        )

    def preview_day(self, actor: Actor, driver_id: int, day: date) -> DaySummary:
        """The summary a driver sees before submitting their handover."""
        require_admin_or_driver(actor, driver_id)
        return self.summarize_day(driver_id, day)
