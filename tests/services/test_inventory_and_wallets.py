"""
Tests for bottle wallets and depot inventory counters.
"""

import pytest

from water_delivery.errors import NotFoundError
from water_delivery.services.inventory_service import InventoryService
from water_delivery.services.wallet_service import BottleWalletService


class TestBottleWallet:

    def test_adjust_creates_wallet_at_delta(self, db_session, customer, product):
        service = BottleWalletService(db_session)

        service.adjust(customer.id, product.id, 3)
        db_session.commit()

        assert service.get_balance(customer.id, product.id) == 3

    def test_adjust_increments_existing_wallet(self, db_session, customer, product):
        service = BottleWalletService(db_session)

        service.adjust(customer.id, product.id, 3)
        service.adjust(customer.id, product.id, -1)
        service.adjust(customer.id, product.id, 2)
        db_session.commit()

        wallets = service.get_wallets(customer.id)
        assert len(wallets) == 1
        assert wallets[0].balance == 4

    def test_wallet_may_go_negative(self, db_session, customer, product):
        service = BottleWalletService(db_session)

        service.adjust(customer.id, product.id, -2)
        db_session.commit()

        assert service.get_balance(customer.id, product.id) == -2

    def test_zero_delta_still_creates_wallet(self, db_session, customer, product):
        service = BottleWalletService(db_session)

        service.adjust(customer.id, product.id, 0)
        db_session.commit()

        wallets = service.get_wallets(customer.id)
        assert [w.balance for w in wallets] == [0]

    def test_missing_wallet_reads_as_zero(self, db_session, customer, product):
        service = BottleWalletService(db_session)
        assert service.get_balance(customer.id, product.id) == 0

    def test_wallets_for_unknown_customer(self, db_session):
        with pytest.raises(NotFoundError):
            BottleWalletService(db_session).get_wallets(999)


class TestInventory:

    def test_apply_delivery_moves_stock(self, db_session, product):
        service = InventoryService(db_session)

        service.apply_delivery(product.id, filled_given=5, empty_taken=3)
        db_session.commit()

        refreshed = service.get_product(product.id)
        assert refreshed.stock_filled == 95
        assert refreshed.stock_empty == 13

    def test_apply_delivery_unknown_product(self, db_session):
        with pytest.raises(NotFoundError, match="Product 999 not found"):
            InventoryService(db_session).apply_delivery(999, 1, 1)

    def test_reconcile_counts_wallets_and_depot_stock(
        self, db_session, customer, product
    ):
        BottleWalletService(db_session).adjust(customer.id, product.id, 4)
        InventoryService(db_session).apply_delivery(product.id, 4, 0)
        db_session.commit()

        result = InventoryService(db_session).reconcile(product.id)

        assert result.wallet_total == 4
        assert result.stock_filled == 96
        assert result.units_accounted == 100
