"""
Ledger service: the customer running-tab.

This service enforces the rules of the cash ledger:
1. Entries are append-only
2. Every entry carries balance_after = previous balance + amount
3. Customer.cash_balance is a cache of the latest balance_after,
   written in the same transaction as the entry

No other service writes to ledger_entries or cash_balance.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from water_delivery.errors import ConflictError, NotFoundError, customer_not_found
from water_delivery.models import Customer, LedgerEntry
from water_delivery.schemas.ledger import LedgerChainReport

logger = logging.getLogger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening Balance Migration"


class LedgerService:
    """
    All cash-balance changes pass through this service.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def _lock_customer(self, customer_id: int) -> Customer:
        """
        Load the customer row under a row lock.

        populate_existing makes sure we compute from the balance
        in the database, not a copy cached earlier in the session.
        """
        customer = self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if not customer:
            raise NotFoundError(customer_not_found(customer_id))
        return customer

    def append_entry(
        self,
        customer_id: int,
        amount: Decimal,
        description: str,
        reference_id: str | None = None,
    ) -> LedgerEntry:
        """
        Append one signed entry and move the cached balance with it.

        The caller is responsible for calling db.commit() after
        this method returns successfully.
        """
        customer = self._lock_customer(customer_id)

        balance_after = customer.cash_balance + amount
        entry = LedgerEntry(
            customer_id=customer.id,
            amount=amount,
            description=description,
            balance_after=balance_after,
            reference_id=reference_id,
        )
        self.db.add(entry)
        customer.cash_balance = balance_after
        self.db.flush()

        logger.debug(
            "Ledger entry appended",
            extra={
                "customer_id": customer.id,
                "amount": str(amount),
                "balance_after": str(balance_after),
                "reference_id": reference_id,
            },
        )
        return entry

    def record_opening_balance(
        self, customer_id: int, amount: Decimal
    ) -> LedgerEntry | None:
        """
        Post the one-time opening balance carried over from a
        previous system. Refused once the customer has any entries,
        so that replaying the ledger from zero stays exact.
        """
        customer = self._lock_customer(customer_id)

        existing = self.db.execute(
            select(func.count(LedgerEntry.id)).where(
                LedgerEntry.customer_id == customer.id
            )
        ).scalar()
        if existing:
            raise ConflictError(
                f"Customer {customer_id} already has ledger entries"
            )

        if amount == 0:
            return None

        entry = self.append_entry(
            customer.id, amount, OPENING_BALANCE_DESCRIPTION
        )
        logger.info(
            "Opening balance recorded",
            extra={"customer_id": customer.id, "amount": str(amount)},
        )
        return entry

    def get_balance(self, customer_id: int) -> Decimal:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError(customer_not_found(customer_id))
        return customer.cash_balance

    def get_entries(self, customer_id: int) -> list[LedgerEntry]:
        """Return all entries for a customer, oldest first."""
        if not self.db.get(Customer, customer_id):
            raise NotFoundError(customer_not_found(customer_id))

        entries = self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.customer_id == customer_id)
            .order_by(LedgerEntry.created_at, LedgerEntry.id)
        ).scalars().all()
        return list(entries)

    def get_latest_entry(self, customer_id: int) -> LedgerEntry | None:
        return self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.customer_id == customer_id)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def verify_chain(self, customer_id: int) -> LedgerChainReport:
        """
        Replay every entry from a zero balance.

        The chain is consistent when each balance_after equals the
        running sum and the cached balance equals the final sum.
        """
        entries = self.get_entries(customer_id)
        cached = self.get_balance(customer_id)

        running = Decimal("0")
        broken: list[int] = []
        for entry in entries:
            running += entry.amount
            if entry.balance_after != running:
                broken.append(entry.id)

        is_consistent = not broken and running == cached
        if not is_consistent:
            logger.warning(
                "Ledger chain inconsistent",
                extra={
                    "customer_id": customer_id,
                    "replayed_balance": str(running),
                    "cached_balance": str(cached),
                    "broken_entry_ids": broken,
                },
            )

        return LedgerChainReport(
            customer_id=customer_id,
            entry_count=len(entries),
            replayed_balance=running,
            cached_balance=cached,
            is_consistent=is_consistent,
            broken_entry_ids=broken,
        )
