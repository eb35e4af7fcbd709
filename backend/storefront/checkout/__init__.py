"""
Checkout client: the non-UI half of the storefront checkout page.

Builds carts, validates the payment/delivery form and drives the
create -> pay -> update sequence against the API and the payment provider.
"""
from .cart import Cart, CartItem, apply_stock_update
from .card import (
    CardForm,
    CustomerForm,
    DeliveryForm,
    detect_card_brand,
    expiry_year,
    format_card_number,
    luhn_check,
    validate_checkout_form,
)
from .gateway import CheckoutGateway, CreatedTransaction, PaymentResult
from .flow import CheckoutOutcome, run_checkout

__all__ = [
    'Cart', 'CartItem', 'apply_stock_update',
    'CardForm', 'CustomerForm', 'DeliveryForm',
    'detect_card_brand', 'expiry_year', 'format_card_number', 'luhn_check', 'validate_checkout_form',
    'CheckoutGateway', 'CreatedTransaction', 'PaymentResult',
    'CheckoutOutcome', 'run_checkout',
]
