"""
Expense model.

Driver-logged outflows. Cash-on-hand expenses that are not
REJECTED reduce what the driver is expected to hand over.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.models.base import Base
from water_delivery.models.enums import (
    ExpenseCategory,
    ExpensePaymentMethod,
    ExpenseStatus,
)


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(primary_key=True)
    driver_id: Mapped[int] = mapped_column(
        ForeignKey("drivers.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    category: Mapped[ExpenseCategory] = mapped_column(
        SAEnum(ExpenseCategory, name="expense_category_enum", create_constraint=True),
        nullable=False,
        default=ExpenseCategory.OTHER,
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_method: Mapped[ExpensePaymentMethod] = mapped_column(
        SAEnum(
            ExpensePaymentMethod,
            name="expense_payment_method_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=ExpensePaymentMethod.CASH_ON_HAND,
    )
    status: Mapped[ExpenseStatus] = mapped_column(
        SAEnum(ExpenseStatus, name="expense_status_enum", create_constraint=True),
        nullable=False,
        default=ExpenseStatus.PENDING,
    )
    reviewed_by: Mapped[int | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    driver: Mapped["Driver"] = relationship()

    def __repr__(self) -> str:
        return f"<Expense {self.amount} {self.payment_method.value} ({self.status.value})>"
