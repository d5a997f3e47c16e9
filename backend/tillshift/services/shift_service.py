"""
Shift Ledger Service

WHY: Track operator shifts and cash accountability. Every committed sale
feeds its shift's cash/card/total accumulators; closing the shift compares
the counted drawer against the expected cash.

DESIGN PRINCIPLES:
- At most one OPEN shift per operator (open_shifts index, unique per operator)
- OPEN -> CLOSED only; closed shifts are never reopened
- Discrepancy is reported, never corrected
- apply_sale / reverse_sale only flush; the sale coordinator owns the unit
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Shift, ShiftSale, OpenShift, Sale, SHIFT_OPEN, SHIFT_CLOSED
from ..signals import notify, shift_opened, shift_closed
from tillshift.time_utils import utcnow
from .cart import PAYMENT_CASH, PAYMENT_CARD
from .concurrency import lock_for_update, run_in_transaction
from .errors import (
    InvalidAmountError,
    SaleNotInShiftError,
    ShiftAlreadyOpenError,
    ShiftClosedError,
    ShiftNotFoundError,
    ShiftNotOpenError,
)
from .ledger_service import append_ledger_event


def _require_cents(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmountError(
            f"{field} must be a non-negative integer number of cents",
            details={field: value},
        )
    return value


def _split_payments(payments) -> tuple[int, int]:
    """(cash, card) amounts of a payment list; other tenders only count toward the total."""
    cash = sum(p.amount_cents for p in payments if p.method == PAYMENT_CASH)
    card = sum(p.amount_cents for p in payments if p.method == PAYMENT_CARD)
    return cash, card


def _locked_shift(shift_id: str) -> Shift:
    shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()
    if not shift:
        raise ShiftNotFoundError("Shift not found", details={"shift_id": shift_id})
    return shift


# =============================================================================
# SHIFT LIFECYCLE
# =============================================================================

def start_shift(operator_id: str, opening_cash_cents: int) -> Shift:
    """
    Open a new shift for an operator.

    WHY: Each shift is a period of accountability for one cashier.
    Only one shift can be open per operator at a time.

    Raises:
        ShiftAlreadyOpenError: operator already has an OPEN shift
        InvalidAmountError: opening cash is negative or not an integer
    """
    _require_cents(opening_cash_cents, "opening_cash_cents")

    def _op() -> Shift:
        existing = db.session.get(OpenShift, operator_id)
        if existing:
            raise ShiftAlreadyOpenError(
                f"Operator already has open shift (shift {existing.shift_id})",
                details={"operator_id": operator_id, "shift_id": existing.shift_id},
            )

        shift = Shift(
            operator_id=operator_id,
            status=SHIFT_OPEN,
            opening_cash_cents=opening_cash_cents,
            opened_at=utcnow(),
        )
        db.session.add(shift)
        db.session.flush()

        db.session.add(OpenShift(operator_id=operator_id, shift_id=shift.id))
        try:
            db.session.flush()
        except IntegrityError:
            # Lost a race against another start for the same operator
            raise ShiftAlreadyOpenError(
                "Operator already has an open shift",
                details={"operator_id": operator_id},
            )

        append_ledger_event(
            event_type="shift.opened",
            entity_type="shift",
            entity_id=shift.id,
            operator_id=operator_id,
            shift_id=shift.id,
            occurred_at=shift.opened_at,
            payload={"opening_cash_cents": opening_cash_cents},
        )
        return shift

    shift = run_in_transaction(_op, description="Start shift")

    current_app.logger.info(
        "Shift %s opened for operator %s with %d cents", shift.id, operator_id, opening_cash_cents
    )
    notify(shift_opened, shift=shift)
    return shift


def close_shift(shift_id: str, counted_cash_cents: int, notes: str | None = None) -> Shift:
    """
    Close a shift and report the cash discrepancy.

    expected = opening cash + cash sales
    discrepancy = counted - expected (positive = overage, negative = shortage)

    IMMUTABLE: Once closed, the shift cannot be reopened. The discrepancy is
    recorded for reporting only; nothing is adjusted to make it balance.
    """
    _require_cents(counted_cash_cents, "counted_cash_cents")

    def _op() -> Shift:
        shift = _locked_shift(shift_id)
        if shift.status != SHIFT_OPEN:
            raise ShiftNotOpenError(
                "Shift already closed",
                details={"shift_id": shift_id, "status": shift.status},
            )

        expected_cash = shift.running_expected_cash_cents()
        discrepancy = counted_cash_cents - expected_cash

        shift.status = SHIFT_CLOSED
        shift.closed_at = utcnow()
        shift.closing_cash_cents = counted_cash_cents
        shift.expected_cash_cents = expected_cash
        shift.discrepancy_cents = discrepancy
        shift.notes = notes

        db.session.query(OpenShift).filter_by(operator_id=shift.operator_id).delete()

        append_ledger_event(
            event_type="shift.closed",
            entity_type="shift",
            entity_id=shift.id,
            operator_id=shift.operator_id,
            shift_id=shift.id,
            occurred_at=shift.closed_at,
            note=notes,
            payload={
                "counted_cash_cents": counted_cash_cents,
                "expected_cash_cents": expected_cash,
                "discrepancy_cents": discrepancy,
            },
        )
        return shift

    shift = run_in_transaction(_op, description="Close shift")

    if shift.discrepancy_cents:
        current_app.logger.warning(
            "Shift %s closed with discrepancy %+d cents (expected %d, counted %d)",
            shift.id, shift.discrepancy_cents, shift.expected_cash_cents, shift.closing_cash_cents,
        )
    else:
        current_app.logger.info("Shift %s closed balanced", shift.id)

    notify(shift_closed, shift=shift, discrepancy_cents=shift.discrepancy_cents)
    return shift


def get_open_shift(operator_id: str) -> Shift | None:
    """Get the currently open shift for an operator, if any."""
    entry = db.session.get(OpenShift, operator_id)
    return entry.shift if entry else None


# =============================================================================
# SALE ACCUMULATORS (called inside the sale coordinator's unit of work)
# =============================================================================

def apply_sale(shift_id: str, payments, total_cents: int, sale_id: str) -> Shift:
    """
    Add a committed sale to an OPEN shift.

    cash -> cash_sales_cents, card -> card_sales_cents, every tender ->
    total_sales_cents (via total_cents). The sale id is appended last so
    sale_ids reflects commit completion order.
    """
    shift = _locked_shift(shift_id)
    if shift.status != SHIFT_OPEN:
        raise ShiftClosedError(
            "Cannot apply sale to a closed shift",
            details={"shift_id": shift_id, "sale_id": sale_id},
        )

    cash, card = _split_payments(payments)
    shift.cash_sales_cents += cash
    shift.card_sales_cents += card
    shift.total_sales_cents += total_cents
    shift.sale_links.append(ShiftSale(sale_id=sale_id))

    db.session.flush()
    return shift


def reverse_sale(shift_id: str, payments, total_cents: int, sale_id: str) -> Shift:
    """
    Exact inverse of apply_sale.

    Allowed on CLOSED shifts (audit corrections); the shift stays CLOSED and
    its sealed close figures are left as recorded.
    """
    shift = _locked_shift(shift_id)

    link = next((l for l in shift.sale_links if l.sale_id == sale_id), None)
    if link is None:
        raise SaleNotInShiftError(
            "Sale is not recorded on this shift",
            details={"shift_id": shift_id, "sale_id": sale_id},
        )

    cash, card = _split_payments(payments)
    shift.cash_sales_cents -= cash
    shift.card_sales_cents -= card
    shift.total_sales_cents -= total_cents
    shift.sale_links.remove(link)

    db.session.flush()
    return shift


# =============================================================================
# REPORTING
# =============================================================================

def get_shift(shift_id: str) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if not shift:
        raise ShiftNotFoundError("Shift not found", details={"shift_id": shift_id})
    return shift


def list_shifts(
    operator_id: str | None = None,
    status: str | None = None,
    limit: int = 50,
) -> list[Shift]:
    """Shift history, newest first."""
    q = db.session.query(Shift)
    if operator_id:
        q = q.filter(Shift.operator_id == operator_id)
    if status:
        q = q.filter(Shift.status == status.upper())
    return q.order_by(Shift.opened_at.desc(), Shift.id).limit(limit).all()


def get_shift_sales(shift_id: str) -> list[Sale]:
    """Sales still recorded on a shift, in commit order."""
    shift = get_shift(shift_id)
    ids = shift.sale_ids
    if not ids:
        return []
    by_id = {s.id: s for s in db.session.query(Sale).filter(Sale.id.in_(ids)).all()}
    return [by_id[i] for i in ids if i in by_id]


def get_shift_summary(shift_id: str) -> dict:
    """
    Shift summary for the shift report.

    Returns:
        - Shift details
        - Sales count and totals
        - Expected cash (running while open, sealed once closed)
        - Discrepancy (closed shifts only)
    """
    shift = get_shift(shift_id)
    is_closed = shift.status == SHIFT_CLOSED

    return {
        "shift": shift.to_dict(),
        "sales_count": len(shift.sale_links),
        "cash_sales_cents": shift.cash_sales_cents,
        "card_sales_cents": shift.card_sales_cents,
        "other_sales_cents": shift.total_sales_cents - shift.cash_sales_cents - shift.card_sales_cents,
        "total_sales_cents": shift.total_sales_cents,
        "expected_cash_cents": shift.expected_cash_cents if is_closed else shift.running_expected_cash_cents(),
        "discrepancy_cents": shift.discrepancy_cents,
        "is_closed": is_closed,
    }
