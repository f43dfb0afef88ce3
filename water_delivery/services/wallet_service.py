"""
Bottle wallet service.

Each (customer, product) wallet is moved by a single upsert with
an atomic increment, so there is no read-modify-write window
between two deliveries to the same customer.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from water_delivery.errors import NotFoundError, customer_not_found
from water_delivery.models import BottleWallet, Customer

# Dialects with INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BottleWalletService:

    def __init__(self, db: Session):
        self.db = db

    def adjust(self, customer_id: int, product_id: int, delta: int) -> None:
        """
        Add delta to the customer's wallet for a product, creating
        the wallet at delta if it doesn't exist yet.
        """
        now = datetime.utcnow()
        dialect = self.db.get_bind().dialect.name
        insert = UPSERT_INSERTS.get(dialect)

        if insert is None:
            self._adjust_without_upsert(customer_id, product_id, delta, now)
            return

        stmt = insert(BottleWallet).values(
            customer_id=customer_id,
            product_id=product_id,
            balance=delta,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BottleWallet.customer_id, BottleWallet.product_id],
            set_={"balance": BottleWallet.balance + delta, "updated_at": now},
        )
        self.db.execute(stmt)

    def _adjust_without_upsert(
        self, customer_id: int, product_id: int, delta: int, now: datetime
    ) -> None:
        # Increment in place; only insert when no row matched.
        result = self.db.execute(
            update(BottleWallet)
            .where(
                BottleWallet.customer_id == customer_id,
                BottleWallet.product_id == product_id,
            )
            .values(balance=BottleWallet.balance + delta, updated_at=now)
        )
        if result.rowcount == 0:
            self.db.add(BottleWallet(
                customer_id=customer_id,
                product_id=product_id,
                balance=delta,
                updated_at=now,
            ))
            self.db.flush()

    def get_wallets(self, customer_id: int) -> list[BottleWallet]:
        if not self.db.get(Customer, customer_id):
            raise NotFoundError(customer_not_found(customer_id))

        wallets = self.db.execute(
            select(BottleWallet)
            .where(BottleWallet.customer_id == customer_id)
            .order_by(BottleWallet.product_id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return list(wallets)

    def get_balance(self, customer_id: int, product_id: int) -> int:
        """Containers held; 0 when the customer has no wallet yet."""
        balance = self.db.execute(
            select(BottleWallet.balance).where(
                BottleWallet.customer_id == customer_id,
                BottleWallet.product_id == product_id,
            )
        ).scalar_one_or_none()
        return balance or 0
