from .catalog import Product
from .transactions import Customer, Delivery, Transaction, TransactionItem, TRANSACTION_STATUSES

__all__ = [
    'Product',
    'Customer', 'Delivery', 'Transaction', 'TransactionItem',
    'TRANSACTION_STATUSES',
]
