"""Transactions port — persistence interface used by the transaction workflow.

The workflow in ``transaction_service`` programs against this interface; the
SQLAlchemy adapter (``transactions_repository``) is the production
implementation and the test suite ships an in-memory one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from .results import StockShortfall


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    name: str
    image_url: Optional[str]
    price_cents: int
    stock: int


@dataclass(frozen=True)
class ItemSnapshot:
    product_id: str
    name: str
    image_url: Optional[str]
    price_cents: int
    quantity: int


@dataclass(frozen=True)
class CustomerData:
    full_name: str
    email: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class DeliveryData:
    address_line1: str
    city: str
    state: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NewTransaction:
    reference: str
    status: str
    amount_cents: int
    base_fee_cents: int
    delivery_fee_cents: int
    primary_product_id: str
    customer: CustomerData
    delivery: DeliveryData
    items: tuple[ItemSnapshot, ...]
    card_brand: Optional[str] = None
    card_last4: Optional[str] = None


@dataclass(frozen=True)
class CreatedTransaction:
    id: str
    reference: str
    status: str


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    status: str


@dataclass(frozen=True)
class TransactionWithItems:
    id: str
    status: str
    items: tuple[ItemSnapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class StockAdjustment:
    product_id: str
    quantity: int


class StockConflictError(Exception):
    """
    Raised by an adapter when stock ran out between the workflow's check and
    the write. The write has been rolled back when this is raised.
    """

    def __init__(self, shortfalls: list[StockShortfall]):
        super().__init__("Insufficient stock at write time")
        self.shortfalls = list(shortfalls)


class TransactionsPort(ABC):
    """Persistence operations needed by the transaction workflow."""

    @abstractmethod
    def find_products_by_ids(self, ids: list[str]) -> list[ProductSnapshot]:
        """Return snapshots for the ids that exist; unknown ids are omitted."""

    @abstractmethod
    def create_transaction(self, data: NewTransaction) -> CreatedTransaction:
        """Insert customer, delivery, transaction and items as one unit."""

    @abstractmethod
    def list_transactions(self) -> list[dict]:
        """All transactions, newest first, with customer, delivery and items."""

    @abstractmethod
    def find_transaction_with_items(self, transaction_id: str) -> Optional[TransactionWithItems]:
        ...

    @abstractmethod
    def update_transaction(self, transaction_id: str, updates: dict) -> Optional[TransactionRecord]:
        """
        Apply ``updates`` (snake_case column -> value). Returns None when the
        transaction does not exist.
        """

    @abstractmethod
    def update_transaction_and_decrement_stock(
        self,
        transaction_id: str,
        updates: dict,
        adjustments: list[StockAdjustment],
    ) -> Optional[TransactionRecord]:
        """
        Apply ``updates`` and decrement stock for ``adjustments`` atomically.

        Stock is only decremented if the stored transaction is not already
        APPROVED. Raises StockConflictError (after rolling back) when any
        product lacks stock. Returns None when the transaction does not exist.
        """
