# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/storefront/routes/products.py
"""
Catalog routes.

Read endpoints feed the checkout product page; POST/PUT are catalog edits.
"""
from flask import Blueprint, current_app, request

from ..services.products_service import (
    list_products as list_products_service,
    get_product,
    create_product,
    update_product,
)
from ..validation import ValidationError, ConflictError

products_bp = Blueprint("products", __name__, url_prefix="/products")


@products_bp.get("")
def list_products():
    """List all products, newest first."""
    return list_products_service()


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    product = get_product(product_id)
    if product is None:
        return {"error": "Product not found"}, 404
    return product


@products_bp.post("")
def create_product_route():
    """
    Create a new product.

    Body: name, priceCents (required); description, imageUrl, stock, id (optional).
    """
    payload = request.get_json(silent=True) or {}

    try:
        created = create_product(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Created product %s", created["id"])
    return created, 201


@products_bp.put("/<product_id>")
def update_product_route(product_id: str):
    """Partial catalog edit (name, description, imageUrl, priceCents, stock)."""
    payload = request.get_json(silent=True) or {}

    try:
        updated = update_product(product_id, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if updated is None:
        return {"error": "Product not found"}, 404

    return updated, 200
