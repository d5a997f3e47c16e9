# Overview: Pure money/tax calculation for carts; integer cents in, integer cents out.

"""
Money/Tax Calculator

- subtotal = sum(unit price x quantity)
- discount is clamped to the subtotal (silently), never inverting the total
- tax = taxable x rate / 100, rounded half away from zero to whole cents
- total = taxable + tax

No fractional cents are ever produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidCartError

ONE_CENT = Decimal("1")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    discount_cents: int
    taxable_cents: int
    tax_rate_percent: Decimal
    tax_cents: int
    total_cents: int

    @property
    def tax_rate_bps(self) -> int:
        """Rate in basis points (15% -> 1500)."""
        return round_half_away_from_zero(self.tax_rate_percent * HUNDRED)

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "taxable_cents": self.taxable_cents,
            "tax_rate_percent": str(self.tax_rate_percent),
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


def _require_int(value, field: str, **context) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCartError(f"{field} must be an integer", details={field: value, **context})
    return value


def parse_tax_rate(rate) -> Decimal:
    """Accepts 15, "15", "7.5" or a Decimal; rejects negatives and garbage."""
    if isinstance(rate, bool):
        raise InvalidCartError("Tax rate must be a number", details={"tax_rate_percent": rate})
    try:
        value = Decimal(str(rate))
    except (InvalidOperation, ValueError):
        raise InvalidCartError("Tax rate must be a number", details={"tax_rate_percent": rate})
    if not value.is_finite() or value < 0:
        raise InvalidCartError("Tax rate must be zero or positive", details={"tax_rate_percent": str(rate)})
    return value


def round_half_away_from_zero(value: Decimal) -> int:
    return int(value.quantize(ONE_CENT, rounding=ROUND_HALF_UP))


def calculate_totals(lines, discount_cents: int = 0, tax_rate_percent=0) -> Totals:
    """
    Compute totals for cart lines.

    Raises InvalidCartError for an empty cart, non-positive quantities,
    negative prices, a negative discount or an invalid tax rate.
    """
    lines = list(lines)
    if not lines:
        raise InvalidCartError("Cart is empty")

    subtotal = 0
    for line in lines:
        quantity = _require_int(line.quantity, "quantity", product_id=line.product_id)
        price = _require_int(line.unit_price_cents, "unit_price_cents", product_id=line.product_id)
        if quantity <= 0:
            raise InvalidCartError(
                "Quantity must be positive",
                details={"product_id": line.product_id, "quantity": quantity},
            )
        if price < 0:
            raise InvalidCartError(
                "Unit price cannot be negative",
                details={"product_id": line.product_id, "unit_price_cents": price},
            )
        subtotal += price * quantity

    requested_discount = _require_int(discount_cents, "discount_cents")
    if requested_discount < 0:
        raise InvalidCartError("Discount cannot be negative", details={"discount_cents": requested_discount})

    rate = parse_tax_rate(tax_rate_percent)
    discount = min(requested_discount, subtotal)
    taxable = subtotal - discount
    tax = round_half_away_from_zero(Decimal(taxable) * rate / HUNDRED)

    return Totals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        taxable_cents=taxable,
        tax_rate_percent=rate,
        tax_cents=tax,
        total_cents=taxable + tax,
    )


def calculate_cart_totals(cart, tax_rate_percent) -> Totals:
    return calculate_totals(cart.lines, cart.discount_cents, tax_rate_percent)
