from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque, globally unique primary key."""
    return str(uuid.uuid4())
