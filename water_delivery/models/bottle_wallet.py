"""
Bottle wallet model.

Per (customer, product) count of returnable containers the
customer currently holds. Written only through an atomic
upsert-increment in BottleWalletService.
"""

from datetime import datetime

from sqlalchemy import Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from water_delivery.models.base import Base


class BottleWallet(Base):
    __tablename__ = "bottle_wallets"
    __table_args__ = (
        UniqueConstraint(
            "customer_id", "product_id", name="uq_bottle_wallet_customer_product"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id"), nullable=False, index=True
    )
    # Sum of filled_given - empty_taken over completed order items
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    customer: Mapped["Customer"] = relationship(back_populates="bottle_wallets")
    product: Mapped["Product"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<BottleWallet customer={self.customer_id} "
            f"product={self.product_id} balance={self.balance}>"
        )
