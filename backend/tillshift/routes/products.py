# Overview: Flask API routes for product stock reads; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..extensions import db
from ..models import Product
from ..services import stock_service
from ..decorators import require_operator, require_capability
from ..permissions import VIEW_PRODUCTS


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/low-stock")
@require_operator
@require_capability(VIEW_PRODUCTS)
def low_stock_route():
    """
    Products at or below their low stock threshold.

    Requires: VIEW_PRODUCTS permission
    """
    products = stock_service.list_low_stock()
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.get("/<product_id>")
@require_operator
@require_capability(VIEW_PRODUCTS)
def get_product_route(product_id: str):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()}), 200
