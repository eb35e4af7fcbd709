# Overview: The checkout sequence: create transaction, pay, record the outcome.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .card import CardForm, CustomerForm, DeliveryForm, detect_card_brand
from .cart import BASE_FEE_CENTS, DELIVERY_FEE_CENTS, Cart, apply_stock_update
from .gateway import CheckoutGateway

logger = logging.getLogger(__name__)

SIMULATED_NOTICE = "Backend or Wompi endpoint not available, showing simulated flow."
FAILED_NOTICE = "Payment flow failed. Try again."


@dataclass
class CheckoutOutcome:
    status: str
    transaction_id: Optional[str] = None
    reference: Optional[str] = None
    provider: Optional[str] = None
    provider_tx_id: Optional[str] = None
    notice: Optional[str] = None
    products: list[dict] = field(default_factory=list)

    @property
    def simulated(self) -> bool:
        return self.notice == SIMULATED_NOTICE


def default_decision(card_digits: str) -> str:
    """Even last digit approves, odd declines; no digits counts as 0. Drives the simulated provider."""
    last_digit = int(card_digits[-1:] or "0")
    return "APPROVED" if last_digit % 2 == 0 else "DECLINED"


def _create_payload(cart, customer, delivery, brand, last4, base_fee_cents, delivery_fee_cents) -> dict:
    return {
        "items": cart.to_payload(),
        "amountCents": cart.total_cents(base_fee_cents, delivery_fee_cents),
        "baseFeeCents": base_fee_cents,
        "deliveryFeeCents": delivery_fee_cents,
        "customer": customer.to_payload(),
        "delivery": delivery.to_payload(),
        "cardBrand": brand or "UNKNOWN",
        "cardLast4": last4,
    }


def run_checkout(
    cart: Cart,
    customer: CustomerForm,
    delivery: DeliveryForm,
    card: CardForm,
    gateway: CheckoutGateway,
    products: Optional[list[dict]] = None,
    base_fee_cents: int = BASE_FEE_CENTS,
    delivery_fee_cents: int = DELIVERY_FEE_CENTS,
) -> CheckoutOutcome:
    """
    Run the whole payment sequence and always end in a final status.

    The form is expected to be validated already (see validate_checkout_form).
    ``products`` is the locally held catalog; on approval its stock is
    reduced by the cart quantities and returned on the outcome.
    """
    products = list(products or [])
    digits = card.digits
    brand = detect_card_brand(digits)
    last4 = digits[-4:]

    try:
        created = gateway.try_create_transaction(
            _create_payload(cart, customer, delivery, brand, last4, base_fee_cents, delivery_fee_cents)
        )

        decision = default_decision(digits)
        payment = gateway.try_payment({
            "amountCents": cart.total_cents(base_fee_cents, delivery_fee_cents),
            "currency": "USD",
            "reference": created.reference,
            "card": card.to_payload(),
            "customer": customer.to_payload(),
            "decisionHint": decision,
        })
        status = payment.status or decision
        provider = "SIMULATED" if payment.simulated else "WOMPI"

        update_simulated = gateway.try_update_transaction(created.transaction_id, {
            "status": status,
            "provider": provider,
            "providerTxId": payment.provider_tx_id,
            "cardBrand": brand,
            "cardLast4": last4,
        })
    except Exception:
        logger.exception("Checkout failed")
        return CheckoutOutcome(status="ERROR", notice=FAILED_NOTICE, products=products)

    if status == "APPROVED":
        products = apply_stock_update(products, cart.items)

    simulated = created.simulated or payment.simulated or update_simulated
    logger.info("Checkout %s finished as %s via %s", created.reference, status, provider)
    return CheckoutOutcome(
        status=status,
        transaction_id=created.transaction_id,
        reference=created.reference,
        provider=provider,
        provider_tx_id=payment.provider_tx_id,
        notice=SIMULATED_NOTICE if simulated else None,
        products=products,
    )
