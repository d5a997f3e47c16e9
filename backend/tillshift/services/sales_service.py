"""
Sale Transaction Coordinator

WHY: A checkout touches three ledgers (product stock, the operator's shift,
the invoice sequence) plus the sale record itself. They must change together
or not at all: a crash between steps must never leave a stock decrement
without a sale, or a sale without its shift totals.

COMMIT ORDER (validation first, then one unit of work):
1. resolve the operator's OPEN shift
2. calculate totals
3. payments must equal the total exactly (split allowed, under/over not)
4. stock batch (-quantity per line)
5. invoice number + Sale/Invoice rows
6. shift accumulators
7. audit event, single commit
8. post-commit notifications (receipt/print, UI refresh)

Reversal is the exact inverse and is equally atomic.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleLine, SalePayment, Invoice, Product
from ..permissions import DELETE_SALE
from ..signals import notify, sale_committed, sale_reversed
from tillshift.time_utils import utcnow, business_date
from . import shift_service, stock_service
from .cart import Cart, PaymentEntry
from .concurrency import run_in_transaction
from .errors import (
    InvalidCartError,
    InvalidPaymentError,
    NoActiveShiftError,
    PaymentMismatchError,
    ProductNotFoundError,
    SaleNotFoundError,
    ShiftClosedError,
)
from .invoice_service import next_invoice_number
from .ledger_service import append_ledger_event
from .money import Totals, calculate_cart_totals
from .permission_service import require_capability


def _tax_rate():
    return current_app.config.get("SALES_TAX_RATE_PERCENT", 0)


def _validate_payments(payments, totals: Totals) -> list[PaymentEntry]:
    payments = list(payments or [])
    for payment in payments:
        if not isinstance(payment, PaymentEntry):
            raise InvalidPaymentError("Payments must be PaymentEntry objects")

    paid = sum(p.amount_cents for p in payments)
    if paid != totals.total_cents:
        raise PaymentMismatchError(expected_cents=totals.total_cents, actual_cents=paid)
    return payments


def build_cart(raw_lines, discount_cents: int = 0) -> Cart:
    """
    Assemble a cart from [{product_id, quantity}] using current catalog prices.

    Used by the HTTP layer, where the add-to-cart moment is the request.
    """
    if raw_lines is None:
        raw_lines = []
    if not isinstance(raw_lines, list):
        raise InvalidCartError("lines must be a list")

    cart = Cart(discount_cents=discount_cents)
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise InvalidCartError("Each line must be an object", details={"line": raw})
        product_id = raw.get("product_id")
        product = db.session.get(Product, product_id) if product_id else None
        if not product or not product.is_active:
            raise ProductNotFoundError("Product not found", details={"product_id": product_id})
        cart.add_product(product, raw.get("quantity"))
    return cart


def commit_sale(
    cart: Cart,
    payments,
    operator_id: str,
    customer_id: str | None = None,
    *,
    occurred_at: datetime | None = None,
) -> Sale:
    """
    Turn a cart and its payments into a committed Sale.

    Validation failures (no open shift, bad cart, payment mismatch) are
    raised before anything is written. Stock, invoice, shift and sale
    writes then happen as one transaction.
    """
    shift = shift_service.get_open_shift(operator_id)
    if shift is None:
        raise NoActiveShiftError(
            "Operator has no open shift",
            details={"operator_id": operator_id},
        )
    shift_id = shift.id

    totals = calculate_cart_totals(cart, _tax_rate())
    payments = _validate_payments(payments, totals)
    lines = list(cart.lines)
    occurred_at = occurred_at or utcnow()

    def _op():
        updated_products = stock_service.apply_deltas(
            [(line.product_id, -line.quantity) for line in lines]
        )

        sale = Sale(
            subtotal_cents=totals.subtotal_cents,
            discount_cents=totals.discount_cents,
            tax_rate_bps=totals.tax_rate_bps,
            tax_cents=totals.tax_cents,
            total_cents=totals.total_cents,
            created_at=occurred_at,
            operator_id=operator_id,
            customer_id=customer_id,
            shift_id=shift_id,
        )
        names = {p.id: p.name for p in updated_products}
        for position, line in enumerate(lines, start=1):
            sale.lines.append(SaleLine(
                position=position,
                product_id=line.product_id,
                name=line.name or names.get(line.product_id, ""),
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                line_total_cents=line.line_total_cents,
            ))
        for position, payment in enumerate(payments, start=1):
            sale.payments.append(SalePayment(
                position=position,
                method=payment.method,
                amount_cents=payment.amount_cents,
                reference=payment.reference,
            ))

        issue_date = business_date(occurred_at)
        sale.invoice = Invoice(
            invoice_number=next_invoice_number(issue_date),
            issue_date=issue_date,
            total_cents=totals.total_cents,
            status="paid",
            customer_id=customer_id,
        )
        db.session.add(sale)
        db.session.flush()

        try:
            shift_service.apply_sale(shift_id, payments, totals.total_cents, sale.id)
        except ShiftClosedError as exc:
            # Shift was closed after the lookup above
            raise NoActiveShiftError(
                "Operator has no open shift",
                details={"operator_id": operator_id, "shift_id": shift_id},
            ) from exc

        append_ledger_event(
            event_type="sale.committed",
            entity_type="sale",
            entity_id=sale.id,
            operator_id=operator_id,
            shift_id=shift_id,
            sale_id=sale.id,
            occurred_at=occurred_at,
            note=f"Invoice {sale.invoice.invoice_number}",
            payload={
                **totals.to_dict(),
                "payments": [p.to_dict() for p in sale.payments],
                "lines": [l.to_dict() for l in sale.lines],
            },
        )
        return sale, [p.id for p in updated_products if p.is_low_stock]

    sale, low_stock_ids = run_in_transaction(_op, description="Sale commit")

    current_app.logger.info(
        "Sale %s committed: invoice=%s total=%d shift=%s operator=%s",
        sale.id, sale.invoice.invoice_number, sale.total_cents, shift_id, operator_id,
    )
    for product_id in low_stock_ids:
        product = db.session.get(Product, product_id)
        current_app.logger.warning(
            "Product %s (%s) is low on stock: %d left (threshold %d)",
            product.id, product.name, product.stock, product.low_stock_threshold,
        )

    notify(sale_committed, sale=sale)
    return sale


def reverse_sale(sale_id: str, operator_id: str) -> None:
    """
    Delete a committed sale and undo all of its effects.

    Restores stock, backs the sale out of its shift (even a closed one) and
    deletes the sale with its invoice, all in one transaction. If any step
    fails, including the shift step, the stock restore is rolled back too.
    """
    require_capability(operator_id, DELETE_SALE)

    def _op():
        sale = db.session.get(Sale, sale_id)
        if not sale:
            raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})

        invoice_number = sale.invoice.invoice_number if sale.invoice else None
        shift_id = sale.shift_id
        snapshot = sale.to_dict()

        stock_service.apply_deltas([(line.product_id, line.quantity) for line in sale.lines])
        shift_service.reverse_sale(shift_id, sale.payments, sale.total_cents, sale.id)

        db.session.delete(sale)
        db.session.flush()

        append_ledger_event(
            event_type="sale.reversed",
            entity_type="sale",
            entity_id=sale_id,
            operator_id=operator_id,
            shift_id=shift_id,
            sale_id=sale_id,
            occurred_at=utcnow(),
            note=f"Invoice {invoice_number} deleted" if invoice_number else None,
            payload=snapshot,
        )
        return shift_id, invoice_number, snapshot

    shift_id, invoice_number, snapshot = run_in_transaction(_op, description="Sale reversal")

    current_app.logger.info(
        "Sale %s reversed by operator %s: invoice=%s total=%d shift=%s",
        sale_id, operator_id, invoice_number, snapshot["total_cents"], shift_id,
    )
    notify(
        sale_reversed,
        sale_id=sale_id,
        shift_id=shift_id,
        invoice_number=invoice_number,
        sale=snapshot,
    )


def get_sale(sale_id: str) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale
