"""Checkout client tests; HTTP is served by httpx.MockTransport."""

import json
import re

import httpx
import pytest

from storefront.checkout import (
    Cart,
    CartItem,
    CardForm,
    CheckoutGateway,
    CustomerForm,
    DeliveryForm,
    run_checkout,
)
from storefront.checkout.flow import FAILED_NOTICE, SIMULATED_NOTICE, default_decision

API = "http://api.test"
PAYMENTS = "http://pay.test/v1/payments"


def _gateway(handler, api_url=API, payment_url=PAYMENTS):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return CheckoutGateway(api_url=api_url, payment_url=payment_url, client=client)


def _checkout_inputs(card_number="4242424242424242"):
    cart = Cart()
    cart.add(CartItem("p1", "Product 1", 1000, 2))
    customer = CustomerForm(full_name="Ana Gomez", email="ana@example.com", phone="3001234567")
    delivery = DeliveryForm(address_line1="Calle 10", city="Medellin", state="Antioquia", postal_code="050001")
    card = CardForm(card_number=card_number, exp_month="12", exp_year="30", cvc="123", holder_name="ANA")
    return cart, customer, delivery, card


class Recorder:
    """Handler that records requests and answers from a routing table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, str(request.url), body))
        key = (request.method, str(request.url))
        if key not in self.routes:
            return httpx.Response(404)
        status, payload = self.routes[key]
        return httpx.Response(status, json=payload)


def test_try_create_transaction_uses_backend():
    recorder = Recorder({("POST", f"{API}/transactions"): (201, {"id": "tx_1", "reference": "REF-ABC123"})})
    created = _gateway(recorder).try_create_transaction({"amountCents": 1000})

    assert created.transaction_id == "tx_1"
    assert created.reference == "REF-ABC123"
    assert not created.simulated


def test_try_create_transaction_falls_back_on_error():
    recorder = Recorder({("POST", f"{API}/transactions"): (500, {"error": "boom"})})
    created = _gateway(recorder).try_create_transaction({})

    assert created.simulated
    assert created.transaction_id.startswith("tx_")
    assert re.fullmatch(r"REF-[A-F0-9]{6}", created.reference)


def test_network_failure_falls_back():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    gateway = _gateway(handler)

    assert gateway.try_create_transaction({}).simulated
    payment = gateway.try_payment({})
    assert payment.simulated
    assert payment.status == "APPROVED"
    assert payment.provider_tx_id.startswith("wompi_")
    assert gateway.try_update_transaction("tx_1", {}) is True


def test_unconfigured_endpoints_never_call_out():
    recorder = Recorder({})
    gateway = _gateway(recorder, api_url=None, payment_url=None)

    assert gateway.try_create_transaction({}).simulated
    assert gateway.try_payment({}).simulated
    assert gateway.try_update_transaction("tx_1", {}) is True
    assert recorder.requests == []


def test_from_env(monkeypatch):
    monkeypatch.setenv("STOREFRONT_API_URL", "http://localhost:5000/")
    monkeypatch.delenv("PAYMENT_PROVIDER_URL", raising=False)
    gateway = CheckoutGateway.from_env()
    try:
        assert gateway.api_url == "http://localhost:5000"
        assert gateway.payment_url is None
    finally:
        gateway.close()


@pytest.mark.parametrize("digits, expected", [("4242", "APPROVED"), ("4241", "DECLINED"), ("", "APPROVED")])
def test_default_decision(digits, expected):
    assert default_decision(digits) == expected


def test_run_checkout_with_backend_and_provider():
    recorder = Recorder({
        ("POST", f"{API}/transactions"): (201, {"id": "tx_1", "reference": "REF-ABC123", "status": "PENDING"}),
        ("POST", PAYMENTS): (200, {"status": "APPROVED", "id": "pay_9"}),
        ("PATCH", f"{API}/transactions/tx_1"): (200, {"id": "tx_1", "status": "APPROVED"}),
    })
    cart, customer, delivery, card = _checkout_inputs()

    outcome = run_checkout(
        cart, customer, delivery, card, _gateway(recorder),
        products=[{"id": "p1", "stock": 3}],
    )

    assert outcome.status == "APPROVED"
    assert outcome.reference == "REF-ABC123"
    assert outcome.provider == "WOMPI"
    assert outcome.notice is None
    assert outcome.products == [{"id": "p1", "stock": 1}]

    (_, _, create_body), (_, _, pay_body), (_, _, update_body) = recorder.requests
    assert create_body["amountCents"] == 4400
    assert create_body["items"] == [{"productId": "p1", "name": "Product 1", "priceCents": 1000, "quantity": 2}]
    assert create_body["cardBrand"] == "VISA"
    assert create_body["cardLast4"] == "4242"
    assert pay_body["decisionHint"] == "APPROVED"
    assert pay_body["reference"] == "REF-ABC123"
    assert update_body == {
        "status": "APPROVED",
        "provider": "WOMPI",
        "providerTxId": "pay_9",
        "cardBrand": "VISA",
        "cardLast4": "4242",
    }


def test_run_checkout_provider_decline_keeps_stock():
    recorder = Recorder({
        ("POST", f"{API}/transactions"): (201, {"id": "tx_1", "reference": "REF-ABC123"}),
        ("POST", PAYMENTS): (200, {"status": "DECLINED", "id": "pay_9"}),
        ("PATCH", f"{API}/transactions/tx_1"): (200, {}),
    })
    cart, customer, delivery, card = _checkout_inputs()

    outcome = run_checkout(cart, customer, delivery, card, _gateway(recorder), products=[{"id": "p1", "stock": 3}])

    assert outcome.status == "DECLINED"
    assert outcome.products == [{"id": "p1", "stock": 3}]


def test_run_checkout_missing_provider_status_uses_default_decision():
    recorder = Recorder({
        ("POST", f"{API}/transactions"): (201, {"id": "tx_1", "reference": "REF-ABC123"}),
        ("POST", PAYMENTS): (200, {"id": "pay_9"}),
        ("PATCH", f"{API}/transactions/tx_1"): (200, {}),
    })
    cart, customer, delivery, card = _checkout_inputs(card_number="4111111111111111")

    outcome = run_checkout(cart, customer, delivery, card, _gateway(recorder))

    assert outcome.status == "DECLINED"
    assert recorder.requests[1][2]["decisionHint"] == "DECLINED"


def test_run_checkout_fully_simulated():
    cart, customer, delivery, card = _checkout_inputs()
    gateway = _gateway(Recorder({}), api_url=None, payment_url=None)

    outcome = run_checkout(cart, customer, delivery, card, gateway, products=[{"id": "p1", "stock": 1}])

    assert outcome.status == "APPROVED"
    assert outcome.provider == "SIMULATED"
    assert outcome.transaction_id.startswith("tx_")
    assert outcome.notice == SIMULATED_NOTICE
    assert outcome.simulated
    assert outcome.products == [{"id": "p1", "stock": 0}]


def test_run_checkout_unexpected_error_is_error_status():
    class BrokenGateway(CheckoutGateway):
        def try_payment(self, payload):
            raise RuntimeError("provider SDK crashed")

    cart, customer, delivery, card = _checkout_inputs()
    gateway = BrokenGateway(client=httpx.Client(transport=httpx.MockTransport(Recorder({}))))

    outcome = run_checkout(cart, customer, delivery, card, gateway, products=[{"id": "p1", "stock": 3}])

    assert outcome.status == "ERROR"
    assert outcome.notice == FAILED_NOTICE
    assert outcome.products == [{"id": "p1", "stock": 3}]
