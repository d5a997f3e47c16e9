from __future__ import annotations

from ..extensions import db
from tillshift.time_utils import to_utc_z
from .common import new_id


SHIFT_OPEN = "OPEN"
SHIFT_CLOSED = "CLOSED"


class Shift(db.Model):
    """
    Operator shift and its cash accountability.

    WHY: Cashier accountability. Each shift has opening/closing cash counts,
    accumulates the sales taken during it and reports the drawer discrepancy
    when it is closed.

    LIFECYCLE:
    - OPEN: Shift is active, sales can be committed against it
    - CLOSED: Shift ended, cash counted, discrepancy recorded (terminal)

    Reversing a historical sale still adjusts a CLOSED shift's accumulators;
    it never reopens it.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_operator_status", "operator_id", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    operator_id = db.Column(db.String(36), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=SHIFT_OPEN, index=True)

    # Cash tracking (all amounts in cents)
    opening_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    closing_cash_cents = db.Column(db.Integer, nullable=True)  # counted at close

    cash_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    card_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)

    # Sealed at close: expected = opening + cash sales, discrepancy = counted - expected
    expected_cash_cents = db.Column(db.Integer, nullable=True)
    discrepancy_cents = db.Column(db.Integer, nullable=True)

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    sale_links = db.relationship(
        "ShiftSale",
        order_by="ShiftSale.id",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.status == SHIFT_OPEN

    @property
    def sale_ids(self) -> list[str]:
        """Sale ids in commit completion order."""
        return [link.sale_id for link in self.sale_links]

    def running_expected_cash_cents(self) -> int:
        return self.opening_cash_cents + self.cash_sales_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operator_id": self.operator_id,
            "status": self.status,
            "opening_cash_cents": self.opening_cash_cents,
            "closing_cash_cents": self.closing_cash_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "card_sales_cents": self.card_sales_cents,
            "total_sales_cents": self.total_sales_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "discrepancy_cents": self.discrepancy_cents,
            "sale_ids": self.sale_ids,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "notes": self.notes,
            "version_id": self.version_id,
        }


class ShiftSale(db.Model):
    """Ordered membership of a sale in a shift (insertion id = completion order)."""
    __tablename__ = "shift_sales"
    __table_args__ = (
        db.UniqueConstraint("shift_id", "sale_id", name="uq_shift_sales_shift_sale"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shift_id = db.Column(db.String(36), db.ForeignKey("shifts.id"), nullable=False, index=True)
    sale_id = db.Column(db.String(36), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class OpenShift(db.Model):
    """
    Index of the single OPEN shift per operator.

    WHY: "Which shift is this operator on?" is asked on every commit. The
    row is inserted on start and deleted on close; the unique operator_id
    makes a second concurrent open fail at the database.
    """
    __tablename__ = "open_shifts"

    operator_id = db.Column(db.String(36), primary_key=True)
    shift_id = db.Column(db.String(36), db.ForeignKey("shifts.id"), nullable=False, unique=True)

    shift = db.relationship("Shift")
