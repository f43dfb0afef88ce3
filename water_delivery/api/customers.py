"""
Customer balance endpoints: cash ledger, bottle wallets and
the ledger replay check.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from water_delivery.api.errors import to_http_exception
from water_delivery.config import get_settings
from water_delivery.models import Customer
from water_delivery.models.base import get_db
from water_delivery.services.inventory_service import InventoryService
from water_delivery.services.ledger_service import LedgerService
from water_delivery.services.wallet_service import BottleWalletService
from water_delivery.schemas.ledger import (
    BottleWalletResponse,
    CustomerBalanceResponse,
    InventoryReconciliation,
    LedgerChainReport,
    LedgerEntryResponse,
)

router = APIRouter(tags=["Balances"])


@router.get(
    "/customers/{customer_id}/balance",
    response_model=CustomerBalanceResponse,
)
def get_customer_balance(
    customer_id: int,
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        balance = service.get_balance(customer_id)
    except ValueError as e:
        raise to_http_exception(e)

    customer = db.get(Customer, customer_id)
    return CustomerBalanceResponse(
        customer_id=customer.id,
        name=customer.name,
        cash_balance=balance,
        credit_limit=customer.credit_limit,
        currency=get_settings().CURRENCY,
    )


@router.get(
    "/customers/{customer_id}/ledger",
    response_model=list[LedgerEntryResponse],
)
def get_customer_ledger(
    customer_id: int,
    db: Session = Depends(get_db),
):
    """All ledger entries for a customer, oldest first."""
    try:
        return LedgerService(db).get_entries(customer_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/customers/{customer_id}/ledger/verify",
    response_model=LedgerChainReport,
)
def verify_customer_ledger(
    customer_id: int,
    db: Session = Depends(get_db),
):
    """Replay the ledger from zero and compare with the cached balance."""
    try:
        return LedgerService(db).verify_chain(customer_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/customers/{customer_id}/bottle-wallets",
    response_model=list[BottleWalletResponse],
)
def get_bottle_wallets(
    customer_id: int,
    db: Session = Depends(get_db),
):
    try:
        return BottleWalletService(db).get_wallets(customer_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/products/{product_id}/reconciliation",
    response_model=InventoryReconciliation,
)
def get_product_reconciliation(
    product_id: int,
    db: Session = Depends(get_db),
):
    try:
        return InventoryService(db).reconcile(product_id)
    except ValueError as e:
        raise to_http_exception(e)
