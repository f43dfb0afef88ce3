"""
Depot inventory service.

Filled and empty container counters per product. Deliveries
adjust them with a single UPDATE so concurrent completions
never lose an increment.
"""

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from water_delivery.errors import NotFoundError, product_not_found
from water_delivery.models import BottleWallet, Product
from water_delivery.schemas.ledger import InventoryReconciliation


class InventoryService:

    def __init__(self, db: Session):
        self.db = db

    def apply_delivery(
        self, product_id: int, filled_given: int, empty_taken: int
    ) -> None:
        """Filled containers leave the depot, empties come back."""
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(
                stock_filled=Product.stock_filled - filled_given,
                stock_empty=Product.stock_empty + empty_taken,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(product_not_found(product_id))

    def get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError(product_not_found(product_id))
        return product

    def reconcile(self, product_id: int) -> InventoryReconciliation:
        """
        Containers held by customers plus filled stock at the depot.

        Read-only. Comparing units_accounted against the number of
        units ever introduced is left to the business.
        """
        product = self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not product:
            raise NotFoundError(product_not_found(product_id))

        wallet_total = self.db.execute(
            select(func.coalesce(func.sum(BottleWallet.balance), 0)).where(
                BottleWallet.product_id == product_id
            )
        ).scalar()

        return InventoryReconciliation(
            product_id=product.id,
            stock_filled=product.stock_filled,
            stock_empty=product.stock_empty,
            wallet_total=int(wallet_total),
            units_accounted=int(wallet_total) + product.stock_filled,
        )
