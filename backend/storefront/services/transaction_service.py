"""
Transaction workflow: create, update (approve/decline) and list checkout orders.

WHY: Order totals and stock must be decided by the server. The client total is
only accepted when it matches live catalog prices, and stock is decremented
exactly once, when a transaction first becomes APPROVED.

All three use cases return Ok/Err values (see ``results``); they never raise
for business outcomes. Persistence errors from the port propagate unchanged.
"""

from __future__ import annotations

import logging

from .results import (
    AmountMismatch,
    Err,
    Ok,
    ProductNotFound,
    Result,
    TransactionError,
    TransactionNotFound,
)
from .transaction_validation import (
    aggregate_adjustments,
    aggregate_items,
    expected_amount_cents,
    find_stock_shortfalls,
    insufficient_stock,
    new_reference,
    validate_create_payload,
    validate_update_payload,
)
from .transactions_port import (
    ItemSnapshot,
    NewTransaction,
    StockConflictError,
    TransactionsPort,
)

logger = logging.getLogger(__name__)

PENDING = "PENDING"
APPROVED = "APPROVED"


def create_transaction(payload, *, repository: TransactionsPort) -> Result[dict, TransactionError]:
    """Validate a checkout cart against the live catalog and persist it as PENDING."""
    validated = validate_create_payload(payload)
    if not validated.ok:
        return validated
    request = validated.value

    items = aggregate_items(request.items)
    product_ids = [item.product_id for item in items]
    products = {p.id: p for p in repository.find_products_by_ids(product_ids)}

    missing = [pid for pid in product_ids if pid not in products]
    if missing:
        return Err(ProductNotFound(tuple(missing)))

    shortfalls = find_stock_shortfalls(aggregate_adjustments(items), products)
    if shortfalls:
        return Err(insufficient_stock(shortfalls))

    expected = expected_amount_cents(items, products, request.base_fee_cents, request.delivery_fee_cents)
    if expected != request.amount_cents:
        return Err(AmountMismatch(expected=expected, actual=request.amount_cents))

    snapshots = tuple(
        ItemSnapshot(
            product_id=item.product_id,
            name=products[item.product_id].name,
            image_url=products[item.product_id].image_url or item.image_url,
            price_cents=products[item.product_id].price_cents,
            quantity=item.quantity,
        )
        for item in items
    )

    created = repository.create_transaction(NewTransaction(
        reference=new_reference(),
        status=PENDING,
        amount_cents=request.amount_cents,
        base_fee_cents=request.base_fee_cents,
        delivery_fee_cents=request.delivery_fee_cents,
        primary_product_id=items[0].product_id,
        customer=request.customer,
        delivery=request.delivery,
        items=snapshots,
        card_brand=request.card_brand,
        card_last4=request.card_last4,
    ))

    logger.info("Created transaction %s (%s) for %d cents", created.id, created.reference, request.amount_cents)
    return Ok({"id": created.id, "reference": created.reference, "status": created.status})


def update_transaction(transaction_id: str, payload, *, repository: TransactionsPort) -> Result[dict, TransactionError]:
    """
    Apply a status/provider update. The first move into APPROVED decrements
    stock for every ordered product in the same database transaction.
    """
    validated = validate_update_payload(payload)
    if not validated.ok:
        return validated
    updates = validated.value

    existing = repository.find_transaction_with_items(transaction_id)
    if existing is None:
        return Err(TransactionNotFound(transaction_id))

    is_approval = updates.get("status") == APPROVED and existing.status != APPROVED

    if is_approval and existing.items:
        adjustments = aggregate_adjustments(existing.items)
        products = {
            p.id: p
            for p in repository.find_products_by_ids([a.product_id for a in adjustments])
        }
        shortfalls = find_stock_shortfalls(adjustments, products)
        if shortfalls:
            return Err(insufficient_stock(shortfalls))

        try:
            updated = repository.update_transaction_and_decrement_stock(transaction_id, updates, adjustments)
        except StockConflictError as exc:
            logger.warning("Stock ran out while approving transaction %s", transaction_id)
            return Err(insufficient_stock(exc.shortfalls))

        if updated is None:
            return Err(TransactionNotFound(transaction_id))
        logger.info(
            "Approved transaction %s; stock decremented for %s",
            transaction_id,
            ", ".join(f"{a.product_id}x{a.quantity}" for a in adjustments),
        )
        return Ok({"id": updated.id, "status": updated.status})

    updated = repository.update_transaction(transaction_id, updates)
    if updated is None:
        return Err(TransactionNotFound(transaction_id))
    return Ok({"id": updated.id, "status": updated.status})


def list_transactions(*, repository: TransactionsPort) -> Result[list[dict], TransactionError]:
    return Ok(repository.list_transactions())
