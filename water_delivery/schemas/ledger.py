"""
Pydantic schemas for customer ledger, bottle wallet and
inventory reads.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class LedgerEntryResponse(BaseModel):
    id: int
    customer_id: int
    amount: Decimal
    description: str
    balance_after: Decimal
    reference_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerBalanceResponse(BaseModel):
    customer_id: int
    name: str
    cash_balance: Decimal
    credit_limit: Decimal
    currency: str


class LedgerChainReport(BaseModel):
    """Result of replaying a customer's ledger from zero."""
    customer_id: int
    entry_count: int
    replayed_balance: Decimal
    cached_balance: Decimal
    is_consistent: bool
    # Ids of entries whose balance_after breaks the prefix sum
    broken_entry_ids: list[int]


class BottleWalletResponse(BaseModel):
    id: int
    customer_id: int
    product_id: int
    balance: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventoryReconciliation(BaseModel):
    product_id: int
    stock_filled: int
    stock_empty: int
    wallet_total: int
    units_accounted: int
