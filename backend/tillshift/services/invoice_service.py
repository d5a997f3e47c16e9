# Overview: Invoice sequencer; allocates date-scoped invoice numbers inside the commit transaction.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Invoice, InvoiceSequence
from .errors import InvoiceSequenceError


def format_invoice_number(issue_date: date, number: int) -> str:
    prefix = current_app.config.get("INVOICE_PREFIX", "INV")
    pad = int(current_app.config.get("INVOICE_NUMBER_PAD", 4))
    return f"{prefix}-{issue_date:%Y%m%d}-{number:0{pad}d}"


def _advance(issue_date: date) -> int | None:
    stmt = (
        update(InvoiceSequence)
        .where(InvoiceSequence.issue_date == issue_date)
        .values(next_number=InvoiceSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    db.session.flush()
    current = (
        db.session.query(InvoiceSequence.next_number)
        .filter_by(issue_date=issue_date)
        .scalar()
    )
    return current - 1


def next_invoice_number(issue_date: date) -> str:
    """
    Atomically allocate the next invoice number for a calendar day.

    Must run inside the caller's transaction: the UPDATE takes the row lock
    for that day and holds it until the sale/invoice write commits, so two
    commits on the same day never compute the same number. Numbers are never
    reused, even after a sale is reversed.
    """
    if issue_date is None:
        raise InvoiceSequenceError("issue_date is required", details={"issue_date": None})

    number = _advance(issue_date)
    if number is None:
        seq = InvoiceSequence(issue_date=issue_date, next_number=2)
        try:
            with db.session.begin_nested():
                db.session.add(seq)
            number = 1
        except IntegrityError:
            # Another commit created today's row first; take the next number from it
            number = _advance(issue_date)
            if number is None:
                raise

    return format_invoice_number(issue_date, number)


def get_invoice_by_number(invoice_number: str) -> Invoice | None:
    return db.session.query(Invoice).filter_by(invoice_number=invoice_number).first()


def list_invoices_for_date(issue_date: date) -> list[Invoice]:
    return (
        db.session.query(Invoice)
        .filter_by(issue_date=issue_date)
        # Shorter numbers first so -10000 follows -9999 once a day outgrows the padding
        .order_by(func.length(Invoice.invoice_number), Invoice.invoice_number)
        .all()
    )
