"""
Ledger entry model.

One signed change to a customer's cash balance. Entries are
immutable: once posted they are never modified or deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.models.base import Base


class LedgerEntry(Base):
    """
    An append-only entry in a customer's running tab.

    Ordered by (created_at, id), a customer's entries form a
    prefix-sum chain: balance_after[n] = balance_after[n-1] + amount[n],
    and the last balance_after equals Customer.cash_balance.
    The chain is maintained by LedgerService, not by the model.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_customer_created", "customer_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    balance_after: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    # e.g. the order id for sale and payment entries
    reference_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    customer: Mapped["Customer"] = relationship(
        back_populates="ledger_entries"
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.amount} -> {self.balance_after}>"
