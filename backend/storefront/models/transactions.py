from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z
from .catalog import new_id

TRANSACTION_STATUSES = ("PENDING", "APPROVED", "DECLINED", "ERROR")


class Customer(db.Model):
    """Buyer contact details, written once per transaction."""
    __tablename__ = "customers"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
        }


class Delivery(db.Model):
    """Shipping address for a transaction, created alongside its Customer."""
    __tablename__ = "deliveries"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id"), nullable=False, index=True)
    address_line1 = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(128), nullable=True)
    postal_code = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    fee_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    customer = db.relationship("Customer", backref=db.backref("deliveries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "addressLine1": self.address_line1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "notes": self.notes,
            "feeCents": self.fee_cents,
        }


class Transaction(db.Model):
    """
    Checkout order.

    amount_cents = sum(item price * quantity) + base_fee_cents + delivery_fee_cents,
    checked once at creation against live catalog prices.

    product_id records the first ordered product and is only used for reporting.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_status_created", "status", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    # Human-readable order code (e.g., "REF-1A2B3C")
    reference = db.Column(db.String(16), nullable=False, unique=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    base_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)

    card_brand = db.Column(db.String(32), nullable=True)
    card_last4 = db.Column(db.String(4), nullable=True)
    provider = db.Column(db.String(64), nullable=True)
    provider_tx_id = db.Column(db.String(128), nullable=True)

    customer_id = db.Column(db.String(36), db.ForeignKey("customers.id"), nullable=False, index=True)
    delivery_id = db.Column(db.String(36), db.ForeignKey("deliveries.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer")
    delivery = db.relationship("Delivery")
    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="TransactionItem.position",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "status": self.status,
            "amountCents": self.amount_cents,
            "baseFeeCents": self.base_fee_cents,
            "deliveryFeeCents": self.delivery_fee_cents,
            "cardBrand": self.card_brand,
            "cardLast4": self.card_last4,
            "provider": self.provider,
            "providerTxId": self.provider_tx_id,
            "createdAt": to_utc_z(self.created_at),
            "customer": self.customer.to_dict() if self.customer else None,
            "delivery": self.delivery.to_dict() if self.delivery else None,
            "items": [item.to_dict() for item in self.items],
        }


class TransactionItem(db.Model):
    """Line item with name/price/image copied from the catalog at creation time."""
    __tablename__ = "transaction_items"

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.String(36), db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    name = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "imageUrl": self.image_url,
            "priceCents": self.price_cents,
            "quantity": self.quantity,
        }
