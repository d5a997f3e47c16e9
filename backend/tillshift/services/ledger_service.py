# Overview: Service-layer operations for the audit ledger; append-only event writes and reads.

from __future__ import annotations

from typing import Optional
from datetime import datetime

from ..extensions import db
from ..models import LedgerEvent
from tillshift.time_utils import utcnow
"""
Audit Ledger Invariants (authoritative)

- Append-only audit log for engine events.
- No domain/business logic in the ledger itself.
- Events are written inside the same DB transaction as the change they record,
  so a rolled-back commit leaves no event behind.
- occurred_at is business time; created_at is system time (DB default).
"""


def append_ledger_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id: str,
    operator_id: str | None = None,
    shift_id: str | None = None,
    sale_id: str | None = None,
    occurred_at: Optional[datetime] = None,
    note: Optional[str] = None,
    payload: Optional[dict] = None,
) -> LedgerEvent:
    """
    Append-only ledger event.

    - No deletes/updates of existing events.
    - Flushes only; the surrounding unit commits or rolls back.
    """
    ev = LedgerEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        operator_id=operator_id,
        shift_id=shift_id,
        sale_id=sale_id,
        occurred_at=occurred_at or utcnow(),
        note=note,
        payload=payload,
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev


def list_ledger_events(
    *,
    sale_id: str | None = None,
    shift_id: str | None = None,
    event_type: str | None = None,
    limit: int = 200,
) -> list[LedgerEvent]:
    q = db.session.query(LedgerEvent)
    if sale_id:
        q = q.filter(LedgerEvent.sale_id == sale_id)
    if shift_id:
        q = q.filter(LedgerEvent.shift_id == shift_id)
    if event_type:
        q = q.filter(LedgerEvent.event_type == event_type)
    return q.order_by(LedgerEvent.id).limit(limit).all()
