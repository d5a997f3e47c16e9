# Overview: Transient cart, cart line and payment value objects used at checkout.

"""
Cart assembly

WHY: The price a customer is charged is the price shown when the item went
into the cart. CartLine captures the unit price at add time so a catalog
price change between scan and checkout does not change the sale.

Carts are never persisted; commit turns them into immutable SaleLine rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import InvalidCartError, InvalidPaymentError


PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_OTHER = "other"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_OTHER)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class CartLine:
    product_id: str
    unit_price_cents: int
    quantity: int
    name: str = ""

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class PaymentEntry:
    method: str
    amount_cents: int
    reference: str | None = None

    def __post_init__(self):
        if self.method not in PAYMENT_METHODS:
            raise InvalidPaymentError(
                f"Unknown payment method '{self.method}'",
                details={"method": self.method, "allowed": list(PAYMENT_METHODS)},
            )
        if not _is_int(self.amount_cents) or self.amount_cents <= 0:
            raise InvalidPaymentError(
                "Payment amount must be a positive integer number of cents",
                details={"method": self.method, "amount_cents": self.amount_cents},
            )


@dataclass
class Cart:
    lines: list[CartLine] = field(default_factory=list)
    discount_cents: int = 0

    def add_product(self, product, quantity: int = 1) -> CartLine:
        """
        Add a catalog product, capturing its current price.

        Adding a product already in the cart bumps the quantity and keeps
        the price captured the first time.
        """
        if not _is_int(quantity) or quantity <= 0:
            raise InvalidCartError(
                "Quantity must be a positive integer",
                details={"product_id": product.id, "quantity": quantity},
            )

        for i, line in enumerate(self.lines):
            if line.product_id == product.id:
                updated = CartLine(
                    product_id=line.product_id,
                    unit_price_cents=line.unit_price_cents,
                    quantity=line.quantity + quantity,
                    name=line.name,
                )
                self.lines[i] = updated
                return updated

        line = CartLine(
            product_id=product.id,
            unit_price_cents=product.price_cents,
            quantity=quantity,
            name=product.name,
        )
        self.lines.append(line)
        return line

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.lines = [line for line in self.lines if line.product_id != product_id]
            return
        self.lines = [
            CartLine(line.product_id, line.unit_price_cents, quantity, line.name)
            if line.product_id == product_id else line
            for line in self.lines
        ]

    def set_discount(self, discount_cents: int) -> None:
        self.discount_cents = discount_cents

    def clear(self) -> None:
        self.lines = []
        self.discount_cents = 0

    @property
    def is_empty(self) -> bool:
        return not self.lines


def parse_payments(raw_payments) -> list[PaymentEntry]:
    """Build PaymentEntry objects from request JSON ([{method, amount_cents}])."""
    if raw_payments is None:
        return []
    if not isinstance(raw_payments, list):
        raise InvalidPaymentError("payments must be a list")

    entries = []
    for raw in raw_payments:
        if not isinstance(raw, dict):
            raise InvalidPaymentError("Each payment must be an object")
        entries.append(PaymentEntry(
            method=str(raw.get("method", "")).lower(),
            amount_cents=raw.get("amount_cents"),
            reference=raw.get("reference"),
        ))
    return entries
