from __future__ import annotations

from ..extensions import db
from tillshift.time_utils import to_utc_z
from .common import new_id


class Operator(db.Model):
    """
    Till operator known to the authorization layer.

    Credentials and sessions live outside the engine; this row only carries
    the role that `permission_service.can()` resolves capabilities from.
    """
    __tablename__ = "operators"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(80), nullable=False, unique=True)

    # admin, manager, cashier
    role = db.Column(db.String(32), nullable=False, default="cashier", index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
