# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Operator
from .services import permission_service

OPERATOR_HEADER = "X-Operator-Id"


def require_operator(f):
    """
    Resolve the calling operator.

    Authentication happens upstream; the gateway forwards the operator id in
    the X-Operator-Id header. Sets g.operator (Operator) and g.operator_id.

    SECURITY: Returns 401 if the header is missing or names an unknown or
    deactivated operator.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        operator_id = request.headers.get(OPERATOR_HEADER)
        if not operator_id:
            return jsonify({"error": "Operator required"}), 401

        operator = db.session.get(Operator, operator_id)
        if not operator or not operator.is_active:
            return jsonify({"error": "Unknown or inactive operator"}), 401

        g.operator = operator
        g.operator_id = operator.id
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """Require `capability` for the operator resolved by @require_operator."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_operator was called first
            if not hasattr(g, "operator_id"):
                return jsonify({"error": "Operator required"}), 401

            if not permission_service.can(g.operator_id, capability):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": capability,
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
