import pytest

from tillshift.services.cart import Cart, PaymentEntry, parse_payments
from tillshift.services.errors import InvalidCartError, InvalidPaymentError


class TestCart:

    def test_price_captured_at_add_time(self, db_session, product_a):
        cart = Cart()
        cart.add_product(product_a, 1)

        product_a.price_cents = 9999
        db_session.commit()

        assert cart.lines[0].unit_price_cents == 1000

    def test_adding_same_product_merges_quantity(self, product_a):
        cart = Cart()
        cart.add_product(product_a, 1)
        cart.add_product(product_a, 2)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 3
        assert cart.lines[0].line_total_cents == 3000

    def test_set_quantity_zero_removes_line(self, product_a, product_b):
        cart = Cart()
        cart.add_product(product_a, 1)
        cart.add_product(product_b, 1)

        cart.set_quantity(product_a.id, 0)

        assert [l.product_id for l in cart.lines] == [product_b.id]

    def test_invalid_quantity_rejected(self, product_a):
        with pytest.raises(InvalidCartError):
            Cart().add_product(product_a, 0)

    def test_clear(self, product_a):
        cart = Cart(discount_cents=100)
        cart.add_product(product_a, 1)
        cart.clear()

        assert cart.is_empty
        assert cart.discount_cents == 0


class TestPayments:

    def test_unknown_method_rejected(self):
        with pytest.raises(InvalidPaymentError):
            PaymentEntry(method="bitcoin", amount_cents=100)

    @pytest.mark.parametrize("amount", [0, -100, 1.5, True])
    def test_non_positive_or_non_integer_amount_rejected(self, amount):
        with pytest.raises(InvalidPaymentError):
            PaymentEntry(method="cash", amount_cents=amount)

    def test_parse_payments_from_json(self):
        entries = parse_payments([
            {"method": "CASH", "amount_cents": 300},
            {"method": "card", "amount_cents": 275, "reference": "AUTH-1"},
        ])

        assert [(p.method, p.amount_cents) for p in entries] == [("cash", 300), ("card", 275)]
        assert entries[1].reference == "AUTH-1"

    def test_parse_payments_requires_list(self):
        with pytest.raises(InvalidPaymentError):
            parse_payments({"method": "cash"})
