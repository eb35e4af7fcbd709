# Overview: Row-locking and compare-and-swap helpers for the stock-sensitive writes.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import Product, Transaction


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The conditional updates below keep SQLite correct on their own.
    """
    return query.with_for_update()


def claim_status(transaction_id: str, status: str) -> bool:
    """
    Move a transaction into ``status`` only if it is not already there.

    Returns True when this call performed the transition. A False result means
    the row is missing or another writer got there first.
    """
    stmt = (
        update(Transaction)
        .where(Transaction.id == transaction_id, Transaction.status != status)
        .values(status=status)
        .execution_options(synchronize_session="fetch")
    )
    return db.session.execute(stmt).rowcount == 1


def decrement_stock_if_available(product_id: str, quantity: int) -> bool:
    """Conditional decrement: stock never drops below zero, even under concurrent writers."""
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session="fetch")
    )
    return db.session.execute(stmt).rowcount == 1


def current_stock(product_id: str) -> int:
    stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    return stock if stock is not None else 0
