"""
Cash handover model.

One record per (driver, calendar date). A handover is created
PENDING on the driver's first submission, may be overwritten by
resubmission while PENDING, and leaves PENDING exactly once
through admin verification. After that it is read-only.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Date, DateTime, Numeric, ForeignKey, Text,
    UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.models.base import Base
from water_delivery.models.enums import CashHandoverStatus


VERIFICATION_OUTCOMES = frozenset({
    CashHandoverStatus.VERIFIED,
    CashHandoverStatus.REJECTED,
    CashHandoverStatus.ADJUSTED,
})


class CashHandover(Base):
    __tablename__ = "cash_handovers"
    __table_args__ = (
        UniqueConstraint("driver_id", "date", name="uq_cash_handover_driver_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    driver_id: Mapped[int] = mapped_column(
        ForeignKey("drivers.id"), nullable=False, index=True
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    expected_cash: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    actual_cash: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # expected - actual: positive is a shortage, negative an excess
    discrepancy: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[CashHandoverStatus] = mapped_column(
        SAEnum(
            CashHandoverStatus,
            name="cash_handover_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=CashHandoverStatus.PENDING,
    )

    # Driver side
    driver_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    shift_start: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    shift_end: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Day counters captured at submission time
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cash_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bottles_given: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bottles_taken: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Admin side
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    adjustment_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    verified_by: Mapped[int | None] = mapped_column(nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    driver: Mapped["Driver"] = relationship()

    @property
    def is_pending(self) -> bool:
        return self.status == CashHandoverStatus.PENDING

    def can_transition_to(self, new_status: CashHandoverStatus) -> bool:
        """Only PENDING handovers move, and only to a verification outcome."""
        return self.is_pending and new_status in VERIFICATION_OUTCOMES

    def __repr__(self) -> str:
        return (
            f"<CashHandover driver={self.driver_id} {self.date} "
            f"({self.status.value})>"
        )
