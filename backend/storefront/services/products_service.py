# backend/storefront/services/products_service.py
"""
Catalog service.

Products are read by the checkout and by the transaction workflow; writes
here are plain catalog edits. Stock changes caused by sales go through the
transaction approval workflow, not through update_product.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ModelValidationPolicy, validate_payload, enforce_rules_product

PRODUCT_FIELDS = {
    "name": "name",
    "description": "description",
    "imageUrl": "image_url",
    "priceCents": "price_cents",
    "stock": "stock",
}

CREATE_POLICY = ModelValidationPolicy(
    fields={"id": "id", **PRODUCT_FIELDS},
    required_on_create={"name", "priceCents"},
)

UPDATE_POLICY = ModelValidationPolicy(fields=PRODUCT_FIELDS)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        setattr(p, k, v)


def list_products() -> dict:
    """All products, newest first."""
    products = (
        db.session.query(Product)
        .order_by(Product.created_at.desc(), Product.name.asc())
        .all()
    )
    return {
        "products": [p.to_dict() for p in products],
        "count": len(products),
    }


def get_product(product_id: str) -> dict | None:
    p = db.session.get(Product, product_id)
    return p.to_dict() if p else None


def create_product(payload: dict) -> dict:
    """
    Create product from a raw JSON payload.

    Raises:
        ValidationError: invalid or missing fields
        ConflictError: the requested id is already taken
    """
    patch = validate_payload(model=Product, payload=payload, policy=CREATE_POLICY, partial=False)
    enforce_rules_product(patch)

    if patch.get("id") is not None and db.session.get(Product, patch["id"]) is not None:
        raise ConflictError(f"Product {patch['id']} already exists")
    if patch.get("id") is None:
        patch.pop("id", None)

    p = Product()
    apply_product_patch(p, patch)
    if p.stock is None:
        p.stock = 0

    db.session.add(p)
    db.session.commit()
    return p.to_dict()


def update_product(product_id: str, payload: dict) -> dict | None:
    """
    Partial product edit.

    Returns:
        Updated product dict, or None if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    patch = validate_payload(model=Product, payload=payload, policy=UPDATE_POLICY, partial=True)
    enforce_rules_product(patch)

    apply_product_patch(p, patch)
    db.session.commit()
    return p.to_dict()
