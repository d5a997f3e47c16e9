"""
Stock ledger tests.

Verifies:
- Batches are all-or-nothing
- Decrements below zero fail unless ALLOW_NEGATIVE_STOCK is on
- Increments are never blocked
- Low stock listing honours the threshold
"""

import pytest

from tillshift.services import stock_service
from tillshift.services.errors import InsufficientStockError, ProductNotFoundError


class TestApplyDeltas:

    def test_decrement_and_increment(self, db_session, product_a):
        stock_service.apply_delta(product_a.id, -3)
        db_session.commit()
        assert stock_service.get_stock(product_a.id) == 7

        stock_service.apply_delta(product_a.id, 3)
        db_session.commit()
        assert stock_service.get_stock(product_a.id) == 10

    def test_batch_is_all_or_nothing(self, db_session, product_a, product_b):
        with pytest.raises(InsufficientStockError) as exc_info:
            stock_service.apply_deltas([(product_a.id, -2), (product_b.id, -6)])
        db_session.rollback()

        assert stock_service.get_stock(product_a.id) == 10
        assert stock_service.get_stock(product_b.id) == 5

        items = exc_info.value.details["items"]
        assert items == [{
            "product_id": product_b.id,
            "name": product_b.name,
            "requested_quantity": 6,
            "on_hand": 5,
        }]

    def test_repeated_product_deltas_are_summed(self, db_session, product_b):
        # 3 + 3 > 5 even though each line fits on its own
        with pytest.raises(InsufficientStockError):
            stock_service.apply_deltas([(product_b.id, -3), (product_b.id, -3)])
        db_session.rollback()

        assert stock_service.get_stock(product_b.id) == 5

    def test_exact_stock_can_be_sold(self, db_session, product_b):
        stock_service.apply_delta(product_b.id, -5)
        db_session.commit()
        assert stock_service.get_stock(product_b.id) == 0

    def test_negative_stock_override(self, app, db_session, product_b):
        app.config["ALLOW_NEGATIVE_STOCK"] = True

        stock_service.apply_delta(product_b.id, -8)
        db_session.commit()

        assert stock_service.get_stock(product_b.id) == -3

    def test_increment_on_negative_stock_is_allowed(self, app, db_session, product_b):
        app.config["ALLOW_NEGATIVE_STOCK"] = True
        stock_service.apply_delta(product_b.id, -8)
        db_session.commit()
        app.config["ALLOW_NEGATIVE_STOCK"] = False

        stock_service.apply_delta(product_b.id, 1)
        db_session.commit()

        assert stock_service.get_stock(product_b.id) == -2

    def test_unknown_product(self, db_session):
        with pytest.raises(ProductNotFoundError):
            stock_service.apply_delta("missing", -1)


class TestLowStock:

    def test_low_stock_listing(self, db_session, make_product):
        low = make_product("LOW-1", 100, 2, low_stock_threshold=5)
        make_product("OK-1", 100, 20, low_stock_threshold=5)
        make_product("UNTRACKED-1", 100, 0, low_stock_threshold=0)

        products = stock_service.list_low_stock()

        assert [p.id for p in products] == [low.id]
        assert low.is_low_stock
