# Overview: Flask API routes for sale commit and reversal; parses input and returns JSON responses.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.cart import parse_payments
from ..services.errors import EngineError
from ..decorators import require_operator, require_capability
from ..permissions import CREATE_SALE, DELETE_SALE


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/")
@sales_bp.post("")
@require_operator
@require_capability(CREATE_SALE)
def commit_sale_route():
    """
    Commit a sale against the calling operator's open shift.

    Requires: CREATE_SALE permission
    Available to: admin, manager, cashier

    Request body:
    {
        "lines": [{"product_id": "...", "quantity": 2}],
        "discount_cents": 0,
        "payments": [{"method": "cash", "amount_cents": 1150}],
        "customer_id": null
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        lines = data.get("lines")
        if not isinstance(lines, list):
            return jsonify({"error": "lines required"}), 400

        cart = sales_service.build_cart(lines, data.get("discount_cents", 0))
        payments = parse_payments(data.get("payments"))

        sale = sales_service.commit_sale(
            cart,
            payments,
            g.operator_id,
            customer_id=data.get("customer_id"),
        )
        return jsonify({"sale": sale.to_dict()}), 201

    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<sale_id>")
@require_operator
@require_capability(CREATE_SALE)
def get_sale_route(sale_id: str):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<sale_id>")
@require_operator
@require_capability(DELETE_SALE)
def reverse_sale_route(sale_id: str):
    """
    Delete a committed sale, restoring stock and backing it out of its shift.

    Requires: DELETE_SALE permission
    Available to: admin, manager
    """
    try:
        sales_service.reverse_sale(sale_id, g.operator_id)
        return jsonify({"deleted": sale_id}), 200

    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to reverse sale")
        return jsonify({"error": "Internal server error"}), 500
