# Overview: Stock ledger adapter; applies signed stock deltas to products under the negative-stock policy.

"""
Stock Ledger Adapter

WHY: Stock is one of the three ledgers a sale touches. Every stock change
made by the engine goes through this module so the negative-stock policy is
enforced in exactly one place.

RULES:
- A decrement that would leave stock below zero fails with
  InsufficientStockError unless ALLOW_NEGATIVE_STOCK is enabled.
- Batches are all-or-nothing: every product is checked before any is written.
- Increments (sale reversals) are never blocked.
- Nothing here commits; the caller owns the transaction.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update
from .errors import InsufficientStockError, ProductNotFoundError


def negative_stock_allowed() -> bool:
    return bool(current_app.config.get("ALLOW_NEGATIVE_STOCK", False))


def _merge_deltas(deltas) -> dict[str, int]:
    merged: dict[str, int] = {}
    for product_id, delta in deltas:
        merged[product_id] = merged.get(product_id, 0) + delta
    return merged


def _load_locked(product_ids) -> dict[str, Product]:
    # Sorted so concurrent batches lock rows in the same order
    ordered = sorted(product_ids)
    products = (
        lock_for_update(db.session.query(Product).filter(Product.id.in_(ordered)))
        .order_by(Product.id)
        .all()
    )
    by_id = {p.id: p for p in products}

    missing = [pid for pid in ordered if pid not in by_id]
    if missing:
        raise ProductNotFoundError("Product not found", details={"product_ids": missing})
    return by_id


def apply_deltas(deltas) -> list[Product]:
    """
    Apply (product_id, signed_delta) pairs as one batch.

    Deltas for the same product are summed before checking, so two cart
    lines of the same product cannot each pass on their own and together
    overdraw stock.
    """
    merged = _merge_deltas(deltas)
    if not merged:
        return []

    products = _load_locked(merged.keys())
    allow_negative = negative_stock_allowed()

    insufficient = []
    for product_id, delta in merged.items():
        product = products[product_id]
        new_stock = product.stock + delta
        if delta < 0 and new_stock < 0 and not allow_negative:
            insufficient.append({
                "product_id": product_id,
                "name": product.name,
                "requested_quantity": -delta,
                "on_hand": product.stock,
            })

    if insufficient:
        raise InsufficientStockError(insufficient)

    updated = []
    for product_id, delta in merged.items():
        product = products[product_id]
        product.stock = product.stock + delta
        updated.append(product)

    db.session.flush()
    return updated


def apply_delta(product_id: str, delta: int) -> Product:
    """Apply a single signed stock delta (see apply_deltas)."""
    return apply_deltas([(product_id, delta)])[0]


def get_stock(product_id: str) -> int:
    product = db.session.get(Product, product_id)
    if not product:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product.stock


def list_low_stock() -> list[Product]:
    """Active products at or below their (non-zero) low stock threshold."""
    return (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.low_stock_threshold > 0,
            Product.stock <= Product.low_stock_threshold,
        )
        .order_by(Product.stock, Product.name)
        .all()
    )
