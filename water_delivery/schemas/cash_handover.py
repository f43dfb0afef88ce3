"""
Pydantic schemas for the end-of-day cash handover workflow.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from water_delivery.models.enums import CashHandoverStatus


# --- Day summary ---

class CashOrderLine(BaseModel):
    """One cash-paid order, shown so the driver can audit the total."""
    id: int
    customer_name: str
    amount: Decimal


class DaySummary(BaseModel):
    driver_id: int
    date: date
    total_orders: int
    completed_orders: int
    cash_orders: int
    gross_cash: Decimal
    expenses_amount: Decimal
    expected_cash: Decimal
    bottles_given: int
    bottles_taken: int
    orders_paid_in_cash: list[CashOrderLine]


# --- Requests ---

class HandoverSubmit(BaseModel):
    driver_id: int
    date: date
    actual_cash: Decimal = Field(ge=0, decimal_places=2)
    driver_notes: str | None = None
    shift_start: datetime | None = None
    shift_end: datetime | None = None

    @model_validator(mode="after")
    def shift_must_be_ordered(self) -> "HandoverSubmit":
        if self.shift_start and self.shift_end and self.shift_end < self.shift_start:
            raise ValueError("shift_end must not be before shift_start")
        return self


class HandoverVerify(BaseModel):
    status: CashHandoverStatus
    admin_notes: str | None = None
    # Only meaningful for ADJUSTED
    adjustment_amount: Decimal | None = Field(default=None, decimal_places=2)

    @field_validator("status")
    @classmethod
    def must_be_outcome(cls, v: CashHandoverStatus) -> CashHandoverStatus:
        if v == CashHandoverStatus.PENDING:
            raise ValueError("status must be VERIFIED, REJECTED or ADJUSTED")
        return v


class HandoverFilter(BaseModel):
    status: CashHandoverStatus | None = None
    driver_id: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


# --- Responses ---

class HandoverResponse(BaseModel):
    id: int
    driver_id: int
    date: date
    expected_cash: Decimal
    actual_cash: Decimal
    discrepancy: Decimal
    status: CashHandoverStatus
    driver_notes: str | None
    shift_start: datetime | None
    shift_end: datetime | None
    total_orders: int
    completed_orders: int
    cash_orders: int
    bottles_given: int
    bottles_taken: int
    admin_notes: str | None
    adjustment_amount: Decimal | None
    verified_by: int | None
    verified_at: datetime | None
    submitted_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class HandoverDetail(HandoverResponse):
    gross_cash: Decimal
    pending_expense_amount: Decimal


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class HandoverPage(BaseModel):
    handovers: list[HandoverResponse]
    pagination: Pagination


class StatusBreakdown(BaseModel):
    count: int
    actual_cash: Decimal


class CashStats(BaseModel):
    date: date
    total_cash_orders: int
    total_cash_collected: Decimal
    by_status: dict[CashHandoverStatus, StatusBreakdown]
    total_discrepancy: Decimal
    pending_handovers: int
    large_discrepancies: int


class TrendPoint(BaseModel):
    date: date
    actual_cash: Decimal
    expected_cash: Decimal
    discrepancy: Decimal
