# Overview: Payload normalization and business checks for the transaction workflow.

from __future__ import annotations

import math
import secrets
from dataclasses import dataclass, replace
from typing import Any, Optional

from ..models import Customer, Delivery, Transaction, TransactionItem, TRANSACTION_STATUSES
from .results import (
    Err,
    InsufficientStock,
    InvalidPayload,
    InvalidStatus,
    NothingToUpdate,
    Ok,
    Result,
    StockShortfall,
)
from .transactions_port import CustomerData, DeliveryData, ProductSnapshot, StockAdjustment

# Wire name -> column name for the free-form fields PATCH may touch
# Largest value an Integer column holds on every supported database (32-bit on Postgres)
MAX_CENTS = 2_147_483_647

UPDATABLE_TEXT_FIELDS = {
    "provider": "provider",
    "providerTxId": "provider_tx_id",
    "cardBrand": "card_brand",
    "cardLast4": "card_last4",
}


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    price_cents: int
    quantity: int
    image_url: Optional[str] = None


@dataclass(frozen=True)
class CreateRequest:
    items: tuple[CartLine, ...]
    amount_cents: int
    base_fee_cents: int
    delivery_fee_cents: int
    customer: CustomerData
    delivery: DeliveryData
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None


# =============================================================================
# Coercion
# =============================================================================

def _as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str:
    """Required text: None and non-scalar values become "" so they fail the check."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    return str(value).strip()


def _as_optional_text(value: Any) -> Optional[str]:
    text = _as_text(value)
    return text or None


def _as_number(value: Any) -> float | int:
    """
    Numeric coercion for cents and quantities.

    Missing values count as 0. Anything that is not a number or a numeric
    string (booleans included) becomes NaN so the finiteness check rejects it.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def _is_whole(number: float | int) -> bool:
    return isinstance(number, int) or float(number).is_integer()


def _check_cents(details: list[str], label: str, number: float | int, *, allow_zero: bool) -> None:
    if not math.isfinite(number) or number < 0 or (number == 0 and not allow_zero):
        details.append(f"{label} must be {'>= 0' if allow_zero else '> 0'}")
    elif not _is_whole(number):
        details.append(f"{label} must be a whole number")
    elif number > MAX_CENTS:
        details.append(f"{label} is too large")


def _column_length(model, column: str) -> Optional[int]:
    return model.__table__.c[column].type.length


def _check_length(details: list[str], label: str, value: Optional[str], model, column: str) -> None:
    """Text must fit its String(n) column; over-long values would fail at write time."""
    limit = _column_length(model, column)
    if value and limit and len(value) > limit:
        details.append(f"{label} is too long (max {limit})")


# =============================================================================
# Create
# =============================================================================

def validate_create_payload(payload: Any) -> Result[CreateRequest, InvalidPayload]:
    """
    Normalize a create payload and collect every structural problem.

    All problems are reported together so a client can fix the whole form in
    one round trip.
    """
    payload = _as_mapping(payload)
    details: list[str] = []

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []
    if not raw_items:
        details.append("items must include at least one item")

    parsed_items = []
    for index, raw in enumerate(raw_items):
        raw = _as_mapping(raw)
        product_id = _as_text(raw.get("productId"))
        name = _as_text(raw.get("name"))
        price = _as_number(raw.get("priceCents"))
        quantity = _as_number(raw.get("quantity"))

        if not product_id:
            details.append(f"items[{index}].productId is required")
        if not name:
            details.append(f"items[{index}].name is required")
        _check_cents(details, f"items[{index}].priceCents", price, allow_zero=False)
        _check_cents(details, f"items[{index}].quantity", quantity, allow_zero=False)

        image_url = _as_optional_text(raw.get("imageUrl"))
        _check_length(details, f"items[{index}].productId", product_id, TransactionItem, "product_id")
        _check_length(details, f"items[{index}].name", name, TransactionItem, "name")
        _check_length(details, f"items[{index}].imageUrl", image_url, TransactionItem, "image_url")

        parsed_items.append((product_id, name, price, quantity, image_url))

    amount_cents = _as_number(payload.get("amountCents"))
    base_fee_cents = _as_number(payload.get("baseFeeCents"))
    delivery_fee_cents = _as_number(payload.get("deliveryFeeCents"))

    _check_cents(details, "amountCents", amount_cents, allow_zero=False)
    _check_cents(details, "baseFeeCents", base_fee_cents, allow_zero=True)
    _check_cents(details, "deliveryFeeCents", delivery_fee_cents, allow_zero=True)

    customer = _as_mapping(payload.get("customer"))
    full_name = _as_text(customer.get("fullName"))
    email = _as_text(customer.get("email"))
    if not full_name:
        details.append("customer.fullName is required")
    if not email or "@" not in email:
        details.append("customer.email is invalid")
    phone = _as_optional_text(customer.get("phone"))
    _check_length(details, "customer.fullName", full_name, Customer, "full_name")
    _check_length(details, "customer.email", email, Customer, "email")
    _check_length(details, "customer.phone", phone, Customer, "phone")

    delivery = _as_mapping(payload.get("delivery"))
    address_line1 = _as_text(delivery.get("addressLine1"))
    city = _as_text(delivery.get("city"))
    if not address_line1:
        details.append("delivery.addressLine1 is required")
    if not city:
        details.append("delivery.city is required")
    state = _as_optional_text(delivery.get("state"))
    postal_code = _as_optional_text(delivery.get("postalCode"))
    _check_length(details, "delivery.addressLine1", address_line1, Delivery, "address_line1")
    _check_length(details, "delivery.city", city, Delivery, "city")
    _check_length(details, "delivery.state", state, Delivery, "state")
    _check_length(details, "delivery.postalCode", postal_code, Delivery, "postal_code")

    card_brand = _as_optional_text(payload.get("cardBrand"))
    card_last4 = _as_optional_text(payload.get("cardLast4"))
    _check_length(details, "cardBrand", card_brand, Transaction, "card_brand")
    _check_length(details, "cardLast4", card_last4, Transaction, "card_last4")

    if details:
        return Err(InvalidPayload(tuple(details)))

    items = tuple(
        CartLine(
            product_id=product_id,
            name=name,
            price_cents=int(price),
            quantity=int(quantity),
            image_url=image_url,
        )
        for product_id, name, price, quantity, image_url in parsed_items
    )

    return Ok(CreateRequest(
        items=items,
        amount_cents=int(amount_cents),
        base_fee_cents=int(base_fee_cents),
        delivery_fee_cents=int(delivery_fee_cents),
        customer=CustomerData(
            full_name=full_name,
            email=email,
            phone=phone,
        ),
        delivery=DeliveryData(
            address_line1=address_line1,
            city=city,
            state=state,
            postal_code=postal_code,
            notes=_as_optional_text(delivery.get("notes")),
        ),
        card_brand=card_brand,
        card_last4=card_last4,
    ))


def aggregate_items(items: tuple[CartLine, ...] | list[CartLine]) -> list[CartLine]:
    """Merge lines for the same product, summing quantities. First line keeps its position."""
    grouped: dict[str, CartLine] = {}
    for item in items:
        existing = grouped.get(item.product_id)
        if existing is None:
            grouped[item.product_id] = item
        else:
            grouped[item.product_id] = replace(existing, quantity=existing.quantity + item.quantity)
    return list(grouped.values())


def aggregate_adjustments(items) -> list[StockAdjustment]:
    """Sum ordered quantities per product for anything with product_id/quantity."""
    totals: dict[str, int] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return [StockAdjustment(product_id=pid, quantity=qty) for pid, qty in totals.items()]


def find_stock_shortfalls(
    adjustments: list[StockAdjustment],
    products: dict[str, ProductSnapshot],
) -> list[StockShortfall]:
    """Every product whose stock cannot cover the requested quantity (missing = 0 available)."""
    shortfalls = []
    for adjustment in adjustments:
        product = products.get(adjustment.product_id)
        available = product.stock if product is not None else 0
        if available < adjustment.quantity:
            shortfalls.append(StockShortfall(
                product_id=adjustment.product_id,
                requested=adjustment.quantity,
                available=available,
            ))
    return shortfalls


def insufficient_stock(shortfalls: list[StockShortfall]) -> InsufficientStock:
    return InsufficientStock(tuple(shortfalls))


def expected_amount_cents(
    items: list[CartLine],
    products: dict[str, ProductSnapshot],
    base_fee_cents: int,
    delivery_fee_cents: int,
) -> int:
    """Cart total from live catalog prices; submitted line prices are ignored."""
    subtotal = sum(
        products[item.product_id].price_cents * item.quantity
        for item in items
        if item.product_id in products
    )
    return subtotal + base_fee_cents + delivery_fee_cents


def new_reference() -> str:
    return f"REF-{secrets.token_hex(3).upper()}"


# =============================================================================
# Update
# =============================================================================

def _normalize_status(payload: dict) -> Result[Optional[str], InvalidStatus]:
    if "status" not in payload:
        return Ok(None)
    value = payload["status"]
    # an explicit null is a bad status, not an omitted one
    normalized = "NULL" if value is None else str(value).strip().upper()
    if not normalized:
        return Ok(None)
    if normalized not in TRANSACTION_STATUSES:
        return Err(InvalidStatus(normalized))
    return Ok(normalized)


def validate_update_payload(payload: Any) -> Result[dict, InvalidStatus | InvalidPayload | NothingToUpdate]:
    """
    Build the column updates for a PATCH.

    Omitted keys mean "no change"; blank strings and null clear the column.
    A blank status is treated as omitted; a null status is invalid.
    Text longer than its column is reported as InvalidPayload.
    """
    payload = _as_mapping(payload)

    status_result = _normalize_status(payload)
    if not status_result.ok:
        return status_result

    updates: dict[str, Optional[str]] = {}
    if status_result.value is not None:
        updates["status"] = status_result.value

    details: list[str] = []
    for wire_name, column in UPDATABLE_TEXT_FIELDS.items():
        if wire_name in payload:
            updates[column] = _as_optional_text(payload[wire_name])
            _check_length(details, wire_name, updates[column], Transaction, column)

    if details:
        return Err(InvalidPayload(tuple(details)))

    if not updates:
        return Err(NothingToUpdate())

    return Ok(updates)
