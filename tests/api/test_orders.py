"""
Tests for order and balance API endpoints.

These test the HTTP layer: status codes, identity headers and
response format. Business logic is tested in test_order_service.py.
"""

from decimal import Decimal

import pytest


ADMIN_HEADERS = {"X-User-Id": "1", "X-User-Role": "ADMIN"}


@pytest.fixture
def driver_headers(driver):
    return {"X-User-Id": "20", "X-User-Role": "DRIVER", "X-Driver-Id": str(driver.id)}


@pytest.fixture
def order_payload(customer, driver, product):
    return {
        "customer_id": customer.id,
        "driver_id": driver.id,
        "scheduled_date": "2024-05-10T09:30:00",
        "delivery_charge": "50.00",
        "items": [{"product_id": product.id, "quantity": 4}],
    }


@pytest.fixture
def completion_payload(product):
    return {
        "items": [{
            "product_id": product.id,
            "quantity": 4,
            "filled_given": 4,
            "empty_taken": 1,
        }],
        "cash_collected": "650.00",
        "payment_method": "CASH",
    }


class TestCreateOrder:

    def test_create_order_returns_201(self, client, order_payload):
        response = client.post("/orders", json=order_payload, headers=ADMIN_HEADERS)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "SCHEDULED"
        assert Decimal(data["total_amount"]) == Decimal("650.00")
        assert Decimal(data["items"][0]["price_at_time"]) == Decimal("150.00")

    def test_missing_identity_returns_401(self, client, order_payload):
        response = client.post("/orders", json=order_payload)
        assert response.status_code == 401

    def test_driver_cannot_create_returns_403(self, client, order_payload, driver_headers):
        response = client.post("/orders", json=order_payload, headers=driver_headers)
        assert response.status_code == 403

    def test_unknown_product_returns_404(self, client, order_payload):
        order_payload["items"] = [{"product_id": 999, "quantity": 1}]
        response = client.post("/orders", json=order_payload, headers=ADMIN_HEADERS)
        assert response.status_code == 404

    def test_discount_above_amount_returns_400(self, client, order_payload):
        order_payload["discount"] = "1000.00"
        response = client.post("/orders", json=order_payload, headers=ADMIN_HEADERS)
        assert response.status_code == 400

    def test_zero_quantity_returns_422(self, client, order_payload):
        order_payload["items"][0]["quantity"] = 0
        response = client.post("/orders", json=order_payload, headers=ADMIN_HEADERS)
        assert response.status_code == 422


class TestCompleteOrder:

    def test_complete_posts_to_ledger(
        self, client, place_order, customer, driver_headers, completion_payload
    ):
        order = place_order(delivery_charge=Decimal("50.00"))

        response = client.post(
            f"/orders/{order.id}/complete",
            json=completion_payload,
            headers=driver_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"

        ledger = client.get(f"/customers/{customer.id}/ledger").json()
        assert [Decimal(e["amount"]) for e in ledger] == [
            Decimal("-650.00"), Decimal("650.00"),
        ]
        balance = client.get(f"/customers/{customer.id}/balance").json()
        assert Decimal(balance["cash_balance"]) == Decimal("0")
        assert balance["currency"] == "PKR"

    def test_retry_is_safe(
        self, client, place_order, customer, product, driver_headers, completion_payload
    ):
        order = place_order()
        for _ in range(2):
            response = client.post(
                f"/orders/{order.id}/complete",
                json=completion_payload,
                headers=driver_headers,
            )
            assert response.status_code == 200

        assert len(client.get(f"/customers/{customer.id}/ledger").json()) == 2
        wallets = client.get(f"/customers/{customer.id}/bottle-wallets").json()
        assert [(w["product_id"], w["balance"]) for w in wallets] == [(product.id, 3)]
        report = client.get(f"/customers/{customer.id}/ledger/verify").json()
        assert report["is_consistent"] is True
        reconciliation = client.get(f"/products/{product.id}/reconciliation").json()
        assert reconciliation["stock_filled"] == 96
        assert reconciliation["stock_empty"] == 11

    def test_unknown_order_returns_404(self, client, driver_headers, completion_payload):
        response = client.post(
            "/orders/999/complete", json=completion_payload, headers=driver_headers
        )
        assert response.status_code == 404

    def test_negative_counts_return_422(
        self, client, place_order, driver_headers, completion_payload
    ):
        order = place_order()
        completion_payload["items"][0]["empty_taken"] = -1
        response = client.post(
            f"/orders/{order.id}/complete",
            json=completion_payload,
            headers=driver_headers,
        )
        assert response.status_code == 422


class TestUpdateOrder:

    def test_cancel_completed_returns_409(
        self, client, place_order, driver_headers, completion_payload
    ):
        order = place_order()
        client.post(
            f"/orders/{order.id}/complete",
            json=completion_payload,
            headers=driver_headers,
        )

        response = client.patch(
            f"/orders/{order.id}", json={"status": "CANCELLED"}, headers=ADMIN_HEADERS
        )
        assert response.status_code == 409

    def test_move_to_in_progress(self, client, place_order, driver_headers):
        order = place_order()
        response = client.patch(
            f"/orders/{order.id}", json={"status": "IN_PROGRESS"}, headers=driver_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "IN_PROGRESS"

    def test_get_order(self, client, place_order, driver_headers):
        order = place_order()
        response = client.get(f"/orders/{order.id}", headers=driver_headers)
        assert response.status_code == 200
        assert response.json()["id"] == order.id

    def test_get_order_without_identity_returns_401(self, client, place_order):
        order = place_order()
        assert client.get(f"/orders/{order.id}").status_code == 401

    def test_get_other_drivers_order_returns_403(self, client, place_order, driver):
        order = place_order()
        headers = {"X-User-Id": "21", "X-User-Role": "DRIVER", "X-Driver-Id": str(driver.id + 1)}
        assert client.get(f"/orders/{order.id}", headers=headers).status_code == 403

    def test_get_unknown_order_returns_404(self, client):
        assert client.get("/orders/999", headers=ADMIN_HEADERS).status_code == 404

    def test_repeat_completed_with_new_cash_returns_409(
        self, client, place_order, driver_headers, completion_payload
    ):
        order = place_order()
        client.post(
            f"/orders/{order.id}/complete",
            json=completion_payload,
            headers=driver_headers,
        )

        response = client.patch(
            f"/orders/{order.id}",
            json={"status": "COMPLETED", "cash_collected": "10.00"},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 409


class TestBalances:

    def test_unknown_customer_returns_404(self, client):
        assert client.get("/customers/999/balance").status_code == 404

    def test_unknown_product_reconciliation_returns_404(self, client):
        assert client.get("/products/999/reconciliation").status_code == 404
