"""
Tests for the ExpenseService.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from water_delivery.authorization import Actor
from water_delivery.errors import (
    AuthorizationError,
    InvalidStateTransitionError,
    NotFoundError,
)
from water_delivery.models import ExpenseCategory, ExpenseStatus, UserRole
from water_delivery.schemas.expense import ExpenseCreate, ExpenseReview
from water_delivery.services.expense_service import ExpenseService


class TestLogExpense:

    def test_new_expense_is_pending(self, db_session, driver, driver_actor):
        expense = ExpenseService(db_session).log_expense(ExpenseCreate(
            driver_id=driver.id,
            amount=Decimal("75.50"),
            date=datetime(2024, 5, 10, 13, 0),
            category=ExpenseCategory.FUEL,
            description="Diesel",
        ), driver_actor)
        db_session.commit()

        assert expense.status == ExpenseStatus.PENDING
        assert expense.amount == Decimal("75.50")
        assert expense.reviewed_by is None

    def test_amount_must_be_positive(self, driver):
        with pytest.raises(ValueError):
            ExpenseCreate(driver_id=driver.id, amount=Decimal("0"), date=datetime(2024, 5, 10))

    def test_driver_cannot_log_for_another(self, db_session, driver):
        intruder = Actor(user_id=99, role=UserRole.DRIVER, driver_id=driver.id + 1)
        with pytest.raises(AuthorizationError):
            ExpenseService(db_session).log_expense(ExpenseCreate(
                driver_id=driver.id, amount=Decimal("10"), date=datetime(2024, 5, 10),
            ), intruder)

    def test_unknown_driver(self, db_session, admin):
        with pytest.raises(NotFoundError, match="Driver 999 not found"):
            ExpenseService(db_session).log_expense(ExpenseCreate(
                driver_id=999, amount=Decimal("10"), date=datetime(2024, 5, 10),
            ), admin)


class TestReviewExpense:

    def test_admin_approves(self, db_session, admin, log_expense):
        expense = log_expense("40")

        reviewed = ExpenseService(db_session).review_expense(
            expense.id, ExpenseReview(status=ExpenseStatus.APPROVED), admin
        )

        assert reviewed.status == ExpenseStatus.APPROVED
        assert reviewed.reviewed_by == admin.user_id
        assert reviewed.reviewed_at is not None

    def test_decision_is_final(self, db_session, admin, log_expense):
        expense = log_expense("40", status=ExpenseStatus.REJECTED)

        with pytest.raises(InvalidStateTransitionError, match="already REJECTED"):
            ExpenseService(db_session).review_expense(
                expense.id, ExpenseReview(status=ExpenseStatus.APPROVED), admin
            )

    def test_driver_cannot_review(self, db_session, driver_actor, log_expense):
        expense = log_expense("40")
        with pytest.raises(AuthorizationError):
            ExpenseService(db_session).review_expense(
                expense.id, ExpenseReview(status=ExpenseStatus.APPROVED), driver_actor
            )

    def test_pending_is_not_a_decision(self):
        with pytest.raises(ValueError):
            ExpenseReview(status=ExpenseStatus.PENDING)

    def test_unknown_expense(self, db_session, admin):
        with pytest.raises(NotFoundError, match="Expense 999 not found"):
            ExpenseService(db_session).review_expense(
                999, ExpenseReview(status=ExpenseStatus.APPROVED), admin
            )


class TestListDriverExpenses:

    def test_newest_first(self, db_session, driver, driver_actor, log_expense):
        older = log_expense("10", spent_at=datetime(2024, 5, 9, 8, 0))
        newer = log_expense("20", spent_at=datetime(2024, 5, 10, 8, 0))

        expenses = ExpenseService(db_session).list_driver_expenses(driver_actor, driver.id)

        assert [e.id for e in expenses] == [newer.id, older.id]
