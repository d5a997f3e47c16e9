# Overview: Flask API routes for operator shifts; parses input and returns JSON responses.

"""
Shift API Routes

Shift lifecycle: open -> close (immutable once closed).

SECURITY:
- MANAGE_SHIFT to open/close (cashiers open and close their own shifts)
- VIEW_SHIFTS for history and summaries
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import shift_service
from ..services.errors import EngineError
from ..decorators import require_operator, require_capability
from ..permissions import MANAGE_SHIFT, VIEW_SHIFTS


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.post("/")
@shifts_bp.post("")
@require_operator
@require_capability(MANAGE_SHIFT)
def start_shift_route():
    """
    Open a shift for the calling operator.

    Request body:
    {
        "opening_cash_cents": 10000
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        if "opening_cash_cents" not in data:
            return jsonify({"error": "opening_cash_cents required"}), 400

        shift = shift_service.start_shift(g.operator_id, data["opening_cash_cents"])
        return jsonify({"shift": shift.to_dict()}), 201

    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to start shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/<shift_id>/close")
@require_operator
@require_capability(MANAGE_SHIFT)
def close_shift_route(shift_id: str):
    """
    Close a shift with the counted drawer amount.

    Request body:
    {
        "counted_cash_cents": 25000,
        "notes": "..."  (optional)
    }

    Returns the closed shift including expected_cash_cents and discrepancy_cents.
    """
    try:
        data = request.get_json(silent=True) or {}
        if "counted_cash_cents" not in data:
            return jsonify({"error": "counted_cash_cents required"}), 400

        shift = shift_service.get_shift(shift_id)
        if shift.operator_id != g.operator_id and g.operator.role == "cashier":
            return jsonify({"error": "Cannot close another operator's shift"}), 403

        shift = shift_service.close_shift(
            shift_id,
            data["counted_cash_cents"],
            notes=data.get("notes"),
        )
        return jsonify({"shift": shift.to_dict()}), 200

    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/open")
@require_operator
@require_capability(VIEW_SHIFTS)
def open_shift_route():
    """Current OPEN shift of the calling operator (404 if none)."""
    try:
        shift = shift_service.get_open_shift(g.operator_id)
        if not shift:
            return jsonify({"error": "No open shift"}), 404
        return jsonify({"shift": shift.to_dict()}), 200
    except Exception:
        current_app.logger.exception("Failed to load open shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/")
@shifts_bp.get("")
@require_operator
@require_capability(VIEW_SHIFTS)
def list_shifts_route():
    """
    Shift history, newest first.

    Query params: operator_id, status (OPEN/CLOSED), limit (default 50)
    """
    operator_id = request.args.get("operator_id")
    status = request.args.get("status")
    limit = request.args.get("limit", default=50, type=int)

    try:
        shifts = shift_service.list_shifts(operator_id=operator_id, status=status, limit=limit)
        return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200
    except Exception:
        current_app.logger.exception("Failed to list shifts")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/<shift_id>")
@require_operator
@require_capability(VIEW_SHIFTS)
def shift_summary_route(shift_id: str):
    try:
        summary = shift_service.get_shift_summary(shift_id)
        summary["sales"] = [s.to_dict() for s in shift_service.get_shift_sales(shift_id)]
        return jsonify(summary), 200
    except EngineError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load shift summary")
        return jsonify({"error": "Internal server error"}), 500
