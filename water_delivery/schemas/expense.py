"""
Pydantic schemas for driver expenses.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from water_delivery.models.enums import (
    ExpenseCategory,
    ExpensePaymentMethod,
    ExpenseStatus,
)


class ExpenseCreate(BaseModel):
    driver_id: int
    amount: Decimal = Field(gt=0, decimal_places=2)
    date: datetime
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str | None = Field(default=None, max_length=255)
    payment_method: ExpensePaymentMethod = ExpensePaymentMethod.CASH_ON_HAND


class ExpenseReview(BaseModel):
    status: ExpenseStatus

    @field_validator("status")
    @classmethod
    def must_be_decision(cls, v: ExpenseStatus) -> ExpenseStatus:
        if v == ExpenseStatus.PENDING:
            raise ValueError("review status must be APPROVED or REJECTED")
        return v


class ExpenseResponse(BaseModel):
    id: int
    driver_id: int
    amount: Decimal
    date: datetime
    category: ExpenseCategory
    description: str | None
    payment_method: ExpensePaymentMethod
    status: ExpenseStatus
    reviewed_by: int | None
    reviewed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
