from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional

BASE_FEE_CENTS = 900
DELIVERY_FEE_CENTS = 1500


@dataclass
class CartItem:
    product_id: str
    name: str
    price_cents: int
    quantity: int
    image_url: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {
            "productId": self.product_id,
            "name": self.name,
            "priceCents": self.price_cents,
            "quantity": self.quantity,
        }
        if self.image_url:
            payload["imageUrl"] = self.image_url
        return payload


@dataclass
class Cart:
    """Client-side cart. One line per product; adding the same product again raises its quantity."""
    items: list[CartItem] = field(default_factory=list)

    def find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def add(self, item: CartItem) -> None:
        existing = self.find(item.product_id)
        if existing:
            existing.quantity += item.quantity
        else:
            self.items.append(CartItem(**asdict(item)))

    def set_quantity(self, product_id: str, quantity: int) -> None:
        item = self.find(product_id)
        if item is None:
            return
        item.quantity = max(1, quantity)

    def remove(self, product_id: str) -> None:
        self.items = [item for item in self.items if item.product_id != product_id]

    def clear(self) -> None:
        self.items = []

    def is_empty(self) -> bool:
        return not self.items

    def subtotal_cents(self) -> int:
        return sum(item.price_cents * item.quantity for item in self.items)

    def total_cents(self, base_fee_cents: int = BASE_FEE_CENTS, delivery_fee_cents: int = DELIVERY_FEE_CENTS) -> int:
        return self.subtotal_cents() + base_fee_cents + delivery_fee_cents

    def to_payload(self) -> list[dict]:
        return [item.to_payload() for item in self.items]


def apply_stock_update(products: list[dict], lines: list[CartItem]) -> list[dict]:
    """
    Mirror an approved purchase in a locally held product list (API shape,
    camelCase keys). Stock is clamped at zero. Returns new dicts.
    """
    bought: dict[str, int] = {}
    for line in lines:
        bought[line.product_id] = bought.get(line.product_id, 0) + line.quantity

    updated = []
    for product in products:
        product = dict(product)
        if product.get("id") in bought:
            product["stock"] = max(0, product.get("stock", 0) - bought[product["id"]])
        updated.append(product)
    return updated
