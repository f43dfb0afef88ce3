"""
Shared enumerations for database models.

Mapped to database enums so that an invalid status can't be
stored even if it slips past Python validation.
"""

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    INVENTORY_MGR = "INVENTORY_MGR"
    DRIVER = "DRIVER"
    CUSTOMER = "CUSTOMER"


class OrderStatus(str, enum.Enum):
    """Lifecycle of a delivery order. COMPLETED and CANCELLED are terminal."""
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    """How the customer settled an order."""
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT = "CREDIT"


class ExpenseStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ExpensePaymentMethod(str, enum.Enum):
    """Only CASH_ON_HAND reduces a driver's expected handover."""
    CASH_ON_HAND = "CASH_ON_HAND"
    COMPANY_ACCOUNT = "COMPANY_ACCOUNT"


class ExpenseCategory(str, enum.Enum):
    FUEL = "FUEL"
    MAINTENANCE = "MAINTENANCE"
    FOOD = "FOOD"
    TOLL = "TOLL"
    OTHER = "OTHER"


class CashHandoverStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    ADJUSTED = "ADJUSTED"
