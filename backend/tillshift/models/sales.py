from __future__ import annotations

from ..extensions import db
from tillshift.time_utils import to_utc_z
from .common import new_id


class Sale(db.Model):
    """
    Committed sale.

    WHY: A sale is the auditable record of one checkout. It is written in the
    same transaction as the stock decrement, the shift update and its
    invoice, and it is never edited afterwards.

    LIFECYCLE: created by commit, removed (with lines, payments and invoice)
    only by a full reversal.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_shift_created", "shift_id", "created_at"),
        db.Index("ix_sales_operator_created", "operator_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    # Money snapshot (all amounts in cents)
    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)  # effective, after clamp
    tax_rate_bps = db.Column(db.Integer, nullable=False)  # 1500 = 15%
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Attribution (operator/customer ids are opaque tokens from outside the engine)
    operator_id = db.Column(db.String(36), nullable=False)
    customer_id = db.Column(db.String(36), nullable=True, index=True)
    shift_id = db.Column(db.String(36), db.ForeignKey("shifts.id"), nullable=False, index=True)

    lines = db.relationship(
        "SaleLine",
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    payments = db.relationship(
        "SalePayment",
        order_by="SalePayment.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    invoice = db.relationship(
        "Invoice",
        uselist=False,
        cascade="all, delete-orphan",
        back_populates="sale",
    )

    @property
    def paid_cents(self) -> int:
        return sum(p.amount_cents for p in self.payments)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "operator_id": self.operator_id,
            "customer_id": self.customer_id,
            "shift_id": self.shift_id,
            "invoice_number": self.invoice.invoice_number if self.invoice else None,
            "lines": [line.to_dict() for line in self.lines],
            "payments": [payment.to_dict() for payment in self.payments],
        }


class SaleLine(db.Model):
    """Immutable line snapshot: what was sold, at the price captured in the cart."""
    __tablename__ = "sale_lines"

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


class SalePayment(db.Model):
    """
    Tender applied to a sale.

    TENDER TYPES:
    - cash: counted into the shift's cash drawer
    - card: tracked separately for card settlement
    - other: only contributes to the shift's total sales
    """
    __tablename__ = "sale_payments"

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    method = db.Column(db.String(16), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    # Card auth code, voucher number, etc.
    reference = db.Column(db.String(128), nullable=True)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "amount_cents": self.amount_cents,
            "reference": self.reference,
        }


class Invoice(db.Model):
    """
    Invoice issued for exactly one sale.

    WHY: Customers and auditors refer to sales by a human-readable,
    date-scoped number (INV-20261017-0001) rather than by the opaque sale id.
    """
    __tablename__ = "invoices"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, unique=True)

    invoice_number = db.Column(db.String(64), nullable=False, unique=True)
    issue_date = db.Column(db.Date, nullable=False, index=True)
    total_cents = db.Column(db.Integer, nullable=False)

    # draft, issued, paid, cancelled; committed sales are fully paid
    status = db.Column(db.String(16), nullable=False, default="paid")
    customer_id = db.Column(db.String(36), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", back_populates="invoice")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "invoice_number": self.invoice_number,
            "issue_date": self.issue_date.isoformat(),
            "total_cents": self.total_cents,
            "status": self.status,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceSequence(db.Model):
    """
    Atomic per-day invoice counter.

    WHY: Two commits on the same calendar day must never compute the same
    invoice number. The counter row is advanced with a single UPDATE inside
    the commit's transaction, which serialises concurrent commits for that day.
    """
    __tablename__ = "invoice_sequences"

    id = db.Column(db.Integer, primary_key=True)
    issue_date = db.Column(db.Date, nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "issue_date": self.issue_date.isoformat(),
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
