"""
Expense service.

Drivers log what they spend on the road; admins approve or
reject it. Cash-on-hand expenses feed the expected-cash figure
of the driver's handover.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from water_delivery.authorization import Actor, require_admin, require_admin_or_driver
from water_delivery.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    driver_not_found,
    expense_not_found,
)
from water_delivery.models import Driver, Expense, ExpenseStatus
from water_delivery.schemas.expense import ExpenseCreate, ExpenseReview

logger = logging.getLogger(__name__)


class ExpenseService:

    def __init__(self, db: Session):
        self.db = db

    def log_expense(self, request: ExpenseCreate, actor: Actor) -> Expense:
        require_admin_or_driver(actor, request.driver_id)

        if not self.db.get(Driver, request.driver_id):
            raise NotFoundError(driver_not_found(request.driver_id))

        expense = Expense(
            driver_id=request.driver_id,
            amount=request.amount,
            date=request.date,
            category=request.category,
            description=request.description,
            payment_method=request.payment_method,
            status=ExpenseStatus.PENDING,
        )
        self.db.add(expense)
        self.db.flush()

        logger.info(
            "Expense logged",
            extra={
                "expense_id": expense.id,
                "driver_id": expense.driver_id,
                "amount": str(expense.amount),
                "payment_method": expense.payment_method.value,
            },
        )
        return expense

    def review_expense(
        self, expense_id: int, request: ExpenseReview, actor: Actor
    ) -> Expense:
        """Approve or reject a PENDING expense. Decisions are final."""
        require_admin(actor)

        expense = self.db.execute(
            select(Expense)
            .where(Expense.id == expense_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not expense:
            raise NotFoundError(expense_not_found(expense_id))

        if expense.status != ExpenseStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Expense {expense_id} was already {expense.status.value}"
            )

        expense.status = request.status
        expense.reviewed_by = actor.user_id
        expense.reviewed_at = datetime.utcnow()
        self.db.flush()

        logger.info(
            "Expense reviewed",
            extra={
                "expense_id": expense.id,
                "status": expense.status.value,
                "reviewed_by": actor.user_id,
            },
        )
        return expense

    def list_driver_expenses(
        self, actor: Actor, driver_id: int
    ) -> list[Expense]:
        require_admin_or_driver(actor, driver_id)
        expenses = self.db.execute(
            select(Expense)
            .where(Expense.driver_id == driver_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
        ).scalars().all()
        return list(expenses)
