from __future__ import annotations

from ..extensions import db
from tillshift.time_utils import to_utc_z


class LedgerEvent(db.Model):
    """
    Append-only audit trail of engine events.

    WHY: Sales are deleted on reversal, so the ledger is what keeps the
    history of what was committed, reversed, opened and closed.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "ledger_events"
    __table_args__ = (
        db.Index("ix_ledger_events_entity", "entity_type", "entity_id"),
        db.Index("ix_ledger_events_shift_occurred", "shift_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # e.g. "sale.committed", "sale.reversed", "shift.opened", "shift.closed"
    event_type = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.String(36), nullable=False)

    operator_id = db.Column(db.String(36), nullable=True, index=True)
    shift_id = db.Column(db.String(36), nullable=True)
    sale_id = db.Column(db.String(36), nullable=True, index=True)

    # Business time; created_at is system time
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    note = db.Column(db.String(255), nullable=True)
    payload = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "operator_id": self.operator_id,
            "shift_id": self.shift_id,
            "sale_id": self.sale_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "created_at": to_utc_z(self.created_at),
            "note": self.note,
            "payload": self.payload,
        }
