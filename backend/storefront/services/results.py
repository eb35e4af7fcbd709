# Overview: Explicit success/error values returned by the transaction workflow.

"""
Workflow outcomes are returned, not raised.

Every use case returns either ``Ok(value)`` or ``Err(error)`` where ``error``
is one of the frozen dataclasses below. The HTTP layer maps each error type
to exactly one response code (see ``routes/transactions.py``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E
    ok: ClassVar[bool] = False


Result = Union[Ok[T], Err[E]]


@dataclass(frozen=True)
class StockShortfall:
    product_id: str
    requested: int
    available: int

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


@dataclass(frozen=True)
class InvalidPayload:
    type: ClassVar[str] = "InvalidPayload"
    details: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"details": list(self.details)}


@dataclass(frozen=True)
class ProductNotFound:
    type: ClassVar[str] = "ProductNotFound"
    product_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"productIds": list(self.product_ids)}


@dataclass(frozen=True)
class InsufficientStock:
    type: ClassVar[str] = "InsufficientStock"
    items: tuple[StockShortfall, ...] = ()

    def to_dict(self) -> dict:
        return {"items": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class AmountMismatch:
    type: ClassVar[str] = "AmountMismatch"
    expected: int = 0
    actual: int = 0

    def to_dict(self) -> dict:
        return {"expected": self.expected, "actual": self.actual}


@dataclass(frozen=True)
class TransactionNotFound:
    type: ClassVar[str] = "TransactionNotFound"
    transaction_id: str = ""

    def to_dict(self) -> dict:
        return {"transactionId": self.transaction_id}


@dataclass(frozen=True)
class InvalidStatus:
    type: ClassVar[str] = "InvalidStatus"
    status: str = ""

    def to_dict(self) -> dict:
        return {"status": self.status}


@dataclass(frozen=True)
class NothingToUpdate:
    type: ClassVar[str] = "NothingToUpdate"

    def to_dict(self) -> dict:
        return {}


TransactionError = Union[
    InvalidPayload,
    ProductNotFound,
    InsufficientStock,
    AmountMismatch,
    TransactionNotFound,
    InvalidStatus,
    NothingToUpdate,
]
