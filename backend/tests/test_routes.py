"""
HTTP API tests.

Verifies:
- Requests without a known operator return 401
- Cashier role denied sale reversal (403)
- Engine errors map to JSON with code and details
"""

import pytest

from tillshift.extensions import db
from tillshift.services import sales_service, shift_service

from conftest import operator_headers


@pytest.fixture
def cashier_headers(cashier):
    return operator_headers(cashier)


@pytest.fixture
def manager_headers(manager):
    return operator_headers(manager)


def _open_shift(client, headers, opening_cash_cents=10000):
    resp = client.post("/api/shifts", json={"opening_cash_cents": opening_cash_cents}, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["shift"]


def _commit(client, headers, product, quantity, payments):
    return client.post(
        "/api/sales",
        json={
            "lines": [{"product_id": product.id, "quantity": quantity}],
            "payments": payments,
        },
        headers=headers,
    )


class TestOperatorRequired:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/sales"),
            ("GET", "/api/sales/some-id"),
            ("DELETE", "/api/sales/some-id"),
            ("POST", "/api/shifts"),
            ("GET", "/api/shifts"),
            ("GET", "/api/shifts/open"),
            ("GET", "/api/products/low-stock"),
        ],
    )
    def test_requires_operator(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_operator(self, client):
        resp = client.get("/api/shifts", headers={"X-Operator-Id": "nobody"})
        assert resp.status_code == 401

    def test_inactive_operator(self, client, cashier, cashier_headers):
        cashier.is_active = False
        db.session.commit()

        resp = client.get("/api/shifts", headers=cashier_headers)
        assert resp.status_code == 401


class TestSystem:

    def test_health(self, client):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["open_shifts"] == 0

    def test_version(self, client):
        resp = client.get("/api/version")

        assert resp.status_code == 200
        assert resp.json["api_version"]


class TestShiftRoutes:

    def test_open_and_close_shift(self, client, cashier_headers):
        shift = _open_shift(client, cashier_headers)

        resp = client.get("/api/shifts/open", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["shift"]["id"] == shift["id"]

        resp = client.post(
            f"/api/shifts/{shift['id']}/close",
            json={"counted_cash_cents": 9950, "notes": "short"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        assert resp.json["shift"]["status"] == "CLOSED"
        assert resp.json["shift"]["discrepancy_cents"] == -50

        resp = client.get("/api/shifts/open", headers=cashier_headers)
        assert resp.status_code == 404

    def test_second_open_shift_conflicts(self, client, cashier_headers):
        _open_shift(client, cashier_headers)

        resp = client.post("/api/shifts", json={"opening_cash_cents": 0}, headers=cashier_headers)

        assert resp.status_code == 409
        assert resp.json["code"] == "ShiftAlreadyOpenError"

    def test_opening_cash_required(self, client, cashier_headers):
        resp = client.post("/api/shifts", json={}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_negative_opening_cash(self, client, cashier_headers):
        resp = client.post("/api/shifts", json={"opening_cash_cents": -5}, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.json["code"] == "InvalidAmountError"

    def test_cashier_cannot_close_someone_elses_shift(self, client, cashier_headers, manager_headers):
        shift = _open_shift(client, manager_headers)

        resp = client.post(
            f"/api/shifts/{shift['id']}/close",
            json={"counted_cash_cents": 10000},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_shift_summary(self, client, cashier_headers, product_a):
        shift = _open_shift(client, cashier_headers)
        _commit(client, cashier_headers, product_a, 1, [{"method": "card", "amount_cents": 1150}])

        resp = client.get(f"/api/shifts/{shift['id']}", headers=cashier_headers)

        assert resp.status_code == 200
        assert resp.json["card_sales_cents"] == 1150
        assert resp.json["expected_cash_cents"] == 10000
        assert len(resp.json["sales"]) == 1

    def test_summary_failure_returns_json_500(self, client, cashier_headers, monkeypatch):
        def broken_summary(shift_id):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(shift_service, "get_shift_summary", broken_summary)

        resp = client.get("/api/shifts/some-id", headers=cashier_headers)

        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}

    def test_missing_shift_summary(self, client, cashier_headers):
        resp = client.get("/api/shifts/missing", headers=cashier_headers)
        assert resp.status_code == 404

    def test_list_shifts(self, client, cashier_headers):
        _open_shift(client, cashier_headers)

        resp = client.get("/api/shifts?status=OPEN", headers=cashier_headers)

        assert resp.status_code == 200
        assert len(resp.json["shifts"]) == 1


class TestSaleRoutes:

    def test_commit_sale(self, client, cashier_headers, product_a):
        shift = _open_shift(client, cashier_headers)

        resp = _commit(client, cashier_headers, product_a, 2, [
            {"method": "cash", "amount_cents": 1300},
            {"method": "card", "amount_cents": 1000},
        ])

        assert resp.status_code == 201, resp.json
        sale = resp.json["sale"]
        assert sale["total_cents"] == 2300
        assert sale["shift_id"] == shift["id"]
        assert sale["invoice_number"].startswith("INV-")
        assert [p["method"] for p in sale["payments"]] == ["cash", "card"]

        resp = client.get(f"/api/sales/{sale['id']}", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["id"] == sale["id"]

    def test_payment_mismatch(self, client, cashier_headers, product_a):
        _open_shift(client, cashier_headers)

        resp = _commit(client, cashier_headers, product_a, 2, [{"method": "cash", "amount_cents": 2000}])

        assert resp.status_code == 400
        assert resp.json["code"] == "PaymentMismatchError"
        assert resp.json["details"]["expected_cents"] == 2300
        assert resp.json["details"]["actual_cents"] == 2000

    def test_no_open_shift(self, client, cashier_headers, product_a):
        resp = _commit(client, cashier_headers, product_a, 1, [{"method": "cash", "amount_cents": 1150}])

        assert resp.status_code == 409
        assert resp.json["code"] == "NoActiveShiftError"

    def test_insufficient_stock(self, client, cashier_headers, product_b):
        _open_shift(client, cashier_headers)

        resp = _commit(client, cashier_headers, product_b, 6, [{"method": "cash", "amount_cents": 3450}])

        assert resp.status_code == 409
        assert resp.json["code"] == "InsufficientStockError"
        assert resp.json["details"]["items"][0]["on_hand"] == 5

    def test_unknown_payment_method(self, client, cashier_headers, product_a):
        _open_shift(client, cashier_headers)

        resp = _commit(client, cashier_headers, product_a, 1, [{"method": "iou", "amount_cents": 1150}])

        assert resp.status_code == 400
        assert resp.json["code"] == "InvalidPaymentError"

    def test_lines_required(self, client, cashier_headers):
        resp = client.post("/api/sales", json={"payments": []}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_malformed_line(self, client, cashier_headers):
        _open_shift(client, cashier_headers)

        resp = client.post("/api/sales", json={"lines": ["COLA-330"], "payments": []}, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.json["code"] == "InvalidCartError"

    def test_read_failure_returns_json_500(self, client, cashier_headers, monkeypatch):
        def broken_get_sale(sale_id):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(sales_service, "get_sale", broken_get_sale)

        resp = client.get("/api/sales/some-id", headers=cashier_headers)

        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}

    def test_cashier_cannot_delete_sale(self, client, cashier_headers, product_a):
        _open_shift(client, cashier_headers)
        sale = _commit(client, cashier_headers, product_a, 1, [{"method": "cash", "amount_cents": 1150}]).json["sale"]

        resp = client.delete(f"/api/sales/{sale['id']}", headers=cashier_headers)

        assert resp.status_code == 403
        assert resp.json["required_permission"] == "DELETE_SALE"

    def test_manager_deletes_sale(self, client, cashier_headers, manager_headers, product_a):
        _open_shift(client, cashier_headers)
        sale = _commit(client, cashier_headers, product_a, 1, [{"method": "cash", "amount_cents": 1150}]).json["sale"]

        resp = client.delete(f"/api/sales/{sale['id']}", headers=manager_headers)
        assert resp.status_code == 200

        resp = client.get(f"/api/sales/{sale['id']}", headers=manager_headers)
        assert resp.status_code == 404

        resp = client.get(f"/api/products/{product_a.id}", headers=manager_headers)
        assert resp.json["product"]["stock"] == 10


class TestProductRoutes:

    def test_low_stock(self, client, cashier_headers, make_product):
        low = make_product("LOW-1", 100, 1, low_stock_threshold=3)
        make_product("OK-1", 100, 50, low_stock_threshold=3)

        resp = client.get("/api/products/low-stock", headers=cashier_headers)

        assert resp.status_code == 200
        assert [p["id"] for p in resp.json["products"]] == [low.id]

    def test_missing_product(self, client, cashier_headers):
        resp = client.get("/api/products/missing", headers=cashier_headers)
        assert resp.status_code == 404
