"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from water_delivery.models.base import Base
from water_delivery.models.enums import (
    UserRole,
    OrderStatus,
    PaymentMethod,
    ExpenseStatus,
    ExpensePaymentMethod,
    ExpenseCategory,
    CashHandoverStatus,
)
from water_delivery.models.customer import Customer
from water_delivery.models.driver import Driver
from water_delivery.models.product import Product
from water_delivery.models.ledger_entry import LedgerEntry
from water_delivery.models.bottle_wallet import BottleWallet
from water_delivery.models.order import Order, OrderItem
from water_delivery.models.expense import Expense
from water_delivery.models.cash_handover import CashHandover

__all__ = [
    "Base",
    "UserRole",
    "OrderStatus",
    "PaymentMethod",
    "ExpenseStatus",
    "ExpensePaymentMethod",
    "ExpenseCategory",
    "CashHandoverStatus",
    "Customer",
    "Driver",
    "Product",
    "LedgerEntry",
    "BottleWallet",
    "Order",
    "OrderItem",
    "Expense",
    "CashHandover",
]
