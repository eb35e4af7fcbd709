# Overview: SQLAlchemy implementation of the transactions port.

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Customer, Delivery, Product, Transaction, TransactionItem
from ..time_utils import utcnow
from .concurrency import claim_status, current_stock, decrement_stock_if_available, lock_for_update
from .results import StockShortfall
from .transactions_port import (
    CreatedTransaction,
    ItemSnapshot,
    NewTransaction,
    ProductSnapshot,
    StockAdjustment,
    StockConflictError,
    TransactionRecord,
    TransactionsPort,
    TransactionWithItems,
)

APPROVED = "APPROVED"


def _apply_updates(tx: Transaction, updates: dict) -> None:
    for column, value in updates.items():
        setattr(tx, column, value)
    tx.updated_at = utcnow()


class SqlAlchemyTransactionsRepository(TransactionsPort):
    """Port adapter over the Flask-SQLAlchemy session. Must run inside an app context."""

    def find_products_by_ids(self, ids: list[str]) -> list[ProductSnapshot]:
        if not ids:
            return []
        rows = db.session.query(Product).filter(Product.id.in_(ids)).all()
        return [
            ProductSnapshot(
                id=p.id,
                name=p.name,
                image_url=p.image_url,
                price_cents=p.price_cents,
                stock=p.stock,
            )
            for p in rows
        ]

    def create_transaction(self, data: NewTransaction) -> CreatedTransaction:
        try:
            customer = Customer(
                full_name=data.customer.full_name,
                email=data.customer.email,
                phone=data.customer.phone,
            )
            db.session.add(customer)
            db.session.flush()  # customer.id needed by delivery

            delivery = Delivery(
                customer_id=customer.id,
                address_line1=data.delivery.address_line1,
                city=data.delivery.city,
                state=data.delivery.state,
                postal_code=data.delivery.postal_code,
                notes=data.delivery.notes,
                fee_cents=data.delivery_fee_cents,
            )
            db.session.add(delivery)
            db.session.flush()

            tx = Transaction(
                reference=data.reference,
                status=data.status,
                product_id=data.primary_product_id,
                amount_cents=data.amount_cents,
                base_fee_cents=data.base_fee_cents,
                delivery_fee_cents=data.delivery_fee_cents,
                card_brand=data.card_brand,
                card_last4=data.card_last4,
                customer_id=customer.id,
                delivery_id=delivery.id,
            )
            tx.items = [
                TransactionItem(
                    product_id=item.product_id,
                    position=position,
                    name=item.name,
                    image_url=item.image_url,
                    price_cents=item.price_cents,
                    quantity=item.quantity,
                )
                for position, item in enumerate(data.items)
            ]
            db.session.add(tx)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return CreatedTransaction(id=tx.id, reference=tx.reference, status=tx.status)

    def list_transactions(self) -> list[dict]:
        rows = (
            db.session.query(Transaction)
            .options(
                joinedload(Transaction.customer),
                joinedload(Transaction.delivery),
                selectinload(Transaction.items),
            )
            .order_by(Transaction.created_at.desc())
            .all()
        )
        return [row.to_dict() for row in rows]

    def find_transaction_with_items(self, transaction_id: str) -> Optional[TransactionWithItems]:
        tx = (
            db.session.query(Transaction)
            .options(selectinload(Transaction.items))
            .filter(Transaction.id == transaction_id)
            .first()
        )
        if tx is None:
            return None
        return TransactionWithItems(
            id=tx.id,
            status=tx.status,
            items=tuple(
                ItemSnapshot(
                    product_id=item.product_id,
                    name=item.name,
                    image_url=item.image_url,
                    price_cents=item.price_cents,
                    quantity=item.quantity,
                )
                for item in tx.items
            ),
        )

    def update_transaction(self, transaction_id: str, updates: dict) -> Optional[TransactionRecord]:
        try:
            tx = lock_for_update(db.session.query(Transaction).filter_by(id=transaction_id)).first()
            if tx is None:
                db.session.rollback()
                return None
            _apply_updates(tx, updates)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return TransactionRecord(id=tx.id, status=tx.status)

    def update_transaction_and_decrement_stock(
        self,
        transaction_id: str,
        updates: dict,
        adjustments: list[StockAdjustment],
    ) -> Optional[TransactionRecord]:
        try:
            if claim_status(transaction_id, updates.get("status", APPROVED)):
                shortfalls = []
                for adjustment in adjustments:
                    if not decrement_stock_if_available(adjustment.product_id, adjustment.quantity):
                        shortfalls.append(StockShortfall(
                            product_id=adjustment.product_id,
                            requested=adjustment.quantity,
                            available=current_stock(adjustment.product_id),
                        ))
                if shortfalls:
                    db.session.rollback()
                    raise StockConflictError(shortfalls)

            # Either we just performed the transition, or another writer approved
            # first; in both cases only the plain field updates remain.
            tx = db.session.query(Transaction).filter_by(id=transaction_id).first()
            if tx is None:
                db.session.rollback()
                return None
            _apply_updates(tx, updates)
            db.session.commit()
        except StockConflictError:
            raise
        except Exception:
            db.session.rollback()
            raise
        return TransactionRecord(id=tx.id, status=tx.status)
