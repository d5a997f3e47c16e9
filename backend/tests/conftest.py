"""
Pytest fixtures for tillshift backend tests.

Provides test database setup, operator/product/shift fixtures, and test client.
"""

import pytest
from tillshift import create_app
from tillshift.extensions import db
from tillshift.models import Operator, Product
from tillshift.services import shift_service
from tillshift.services.cart import Cart, PaymentEntry
from tillshift.decorators import OPERATOR_HEADER


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SALES_TAX_RATE_PERCENT': '15',
        'ALLOW_NEGATIVE_STOCK': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Reset per-test config tweaks
    app.config['ALLOW_NEGATIVE_STOCK'] = False
    app.config['SALES_TAX_RATE_PERCENT'] = '15'

    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    # Drop stale instances whose integer ids SQLite may hand out again
    db.session.expunge_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


def _make_operator(db_session, username: str, role: str) -> Operator:
    operator = Operator(username=username, role=role)
    db_session.add(operator)
    db_session.commit()
    return operator


@pytest.fixture(scope='function')
def cashier(db_session):
    return _make_operator(db_session, "cashier_1", "cashier")


@pytest.fixture(scope='function')
def manager(db_session):
    return _make_operator(db_session, "manager_1", "manager")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(sku, price_cents, stock, low_stock_threshold=0)."""
    def _make(sku: str, price_cents: int, stock: int, low_stock_threshold: int = 0, name: str | None = None):
        product = Product(
            sku=sku,
            name=name or f"Product {sku}",
            price_cents=price_cents,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_a(make_product):
    """1000 cents, 10 on hand."""
    return make_product("PROD-A-001", 1000, 10)


@pytest.fixture(scope='function')
def product_b(make_product):
    """500 cents, 5 on hand."""
    return make_product("PROD-B-001", 500, 5)


@pytest.fixture(scope='function')
def open_shift(cashier):
    """Cashier shift opened with 100.00 in the drawer."""
    return shift_service.start_shift(cashier.id, 10000)


def cart_of(*items, discount_cents: int = 0) -> Cart:
    """cart_of((product, qty), ...) capturing current prices."""
    cart = Cart(discount_cents=discount_cents)
    for product, quantity in items:
        cart.add_product(product, quantity)
    return cart


def cash(amount_cents: int) -> PaymentEntry:
    return PaymentEntry(method="cash", amount_cents=amount_cents)


def card(amount_cents: int) -> PaymentEntry:
    return PaymentEntry(method="card", amount_cents=amount_cents)


def operator_headers(operator) -> dict:
    """Helper to create operator identification headers."""
    return {OPERATOR_HEADER: operator.id}
