# Overview: Authorization collaborator; resolves operator capabilities from roles.

"""
Permission checks

DESIGN PRINCIPLES:
- Fail closed: unknown, inactive or role-less operators can do nothing
- Log denials only: grants are not logged
"""

from flask import current_app

from ..extensions import db
from ..models import Operator
from ..permissions import DEFAULT_ROLE_PERMISSIONS
from .errors import PermissionDeniedError


def get_operator_permissions(operator_id: str | None) -> set[str]:
    if not operator_id:
        return set()
    operator = db.session.get(Operator, operator_id)
    if not operator or not operator.is_active:
        return set()
    return set(DEFAULT_ROLE_PERMISSIONS.get(operator.role, set()))


def can(operator_id: str | None, capability: str) -> bool:
    """True when the operator may perform `capability`."""
    return capability in get_operator_permissions(operator_id)


def require_capability(operator_id: str | None, capability: str) -> None:
    """Raise PermissionDeniedError unless can(operator_id, capability)."""
    if can(operator_id, capability):
        return
    current_app.logger.warning(
        "Permission denied: operator=%s capability=%s", operator_id, capability
    )
    raise PermissionDeniedError(
        f"Operator lacks permission {capability}",
        details={"operator_id": operator_id, "required_permission": capability},
    )
