"""
Customer model.

A customer carries a cached cash balance. Negative means the
customer owes money, positive means they have credit. The
balance is only ever written by LedgerService, in the same
transaction that appends the ledger entry it reflects.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.models.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(
        String(30), nullable=True
    )
    cash_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    # Enforced by order placement, not by the reconciliation core
    credit_limit: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="customer"
    )
    bottle_wallets: Mapped[list["BottleWallet"]] = relationship(
        back_populates="customer"
    )

    def __repr__(self) -> str:
        return f"<Customer {self.name} balance={self.cash_balance}>"
