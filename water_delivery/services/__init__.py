"""Business logic services."""

from water_delivery.services.ledger_service import LedgerService
from water_delivery.services.wallet_service import BottleWalletService
from water_delivery.services.inventory_service import InventoryService
from water_delivery.services.order_service import OrderService
from water_delivery.services.cash_summary_service import CashSummaryService
from water_delivery.services.cash_handover_service import CashHandoverService
from water_delivery.services.expense_service import ExpenseService

__all__ = [
    "LedgerService",
    "BottleWalletService",
    "InventoryService",
    "OrderService",
    "CashSummaryService",
    "CashHandoverService",
    "ExpenseService",
]
