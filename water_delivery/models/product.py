"""
Product model with depot inventory counters.

stock_filled and stock_empty are the depot's container counts.
Order completion moves containers between the depot and the
customers' bottle wallets.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Boolean, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from water_delivery.models.base import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    is_returnable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    stock_filled: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    stock_empty: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Product {self.sku} filled={self.stock_filled} "
            f"empty={self.stock_empty}>"
        )
