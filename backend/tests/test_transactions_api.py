"""HTTP tests for /transactions against the SQLite adapter."""

import re

from conftest import checkout_payload, stock_of
from storefront.extensions import db
from storefront.models import Transaction


def _line(product_id="p1", quantity=1, price_cents=1000, name="Product 1"):
    return {"productId": product_id, "name": name, "priceCents": price_cents, "quantity": quantity}


def _create(client, items, amount_cents):
    response = client.post('/transactions', json=checkout_payload(items, amount_cents))
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def test_create_transaction(client, make_product):
    make_product("p1", price_cents=1000, stock=2)

    response = client.post('/transactions', json=checkout_payload([_line(quantity=2)], 4400))

    assert response.status_code == 201
    body = response.get_json()
    assert body["status"] == "PENDING"
    assert re.fullmatch(r"REF-[A-F0-9]{6}", body["reference"])

    tx = db.session.get(Transaction, body["id"])
    assert tx.amount_cents == 4400
    assert tx.product_id == "p1"
    assert tx.customer.email == "ana@example.com"
    assert tx.delivery.city == "Medellin"
    assert tx.delivery.fee_cents == 1500
    assert [(i.product_id, i.quantity, i.price_cents) for i in tx.items] == [("p1", 2, 1000)]


def test_create_invalid_payload(client):
    response = client.post('/transactions', json={"items": []})

    assert response.status_code == 400
    body = response.get_json()
    assert body["type"] == "InvalidPayload"
    assert body["error"] == "Invalid transaction payload"
    assert "items must include at least one item" in body["details"]


def test_create_amount_mismatch(client, make_product):
    make_product("p1", price_cents=1000, stock=5)

    response = client.post('/transactions', json=checkout_payload([_line(quantity=2)], 4000))

    assert response.status_code == 400
    assert response.get_json() == {
        "error": "Amount mismatch",
        "type": "AmountMismatch",
        "expected": 4400,
        "actual": 4000,
    }


def test_create_unknown_product(client):
    response = client.post('/transactions', json=checkout_payload([_line("ghost")], 3400))

    assert response.status_code == 404
    assert response.get_json()["productIds"] == ["ghost"]


def test_create_insufficient_stock(client, make_product):
    make_product("p1", price_cents=1000, stock=1)

    response = client.post('/transactions', json=checkout_payload([_line(quantity=1), _line(quantity=1)], 4400))

    assert response.status_code == 409
    body = response.get_json()
    assert body["type"] == "InsufficientStock"
    assert body["items"] == [{"productId": "p1", "requested": 2, "available": 1}]


def test_approve_decrements_stock_exactly_once(client, make_product):
    make_product("p1", price_cents=1000, stock=2)
    created = _create(client, [_line(quantity=2)], 4400)

    response = client.patch(f'/transactions/{created["id"]}', json={
        "status": "APPROVED",
        "provider": "WOMPI",
        "providerTxId": "wompi_1",
        "cardBrand": "VISA",
        "cardLast4": "4242",
    })
    assert response.status_code == 200
    assert response.get_json() == {"id": created["id"], "status": "APPROVED"}
    assert stock_of("p1") == 0

    again = client.patch(f'/transactions/{created["id"]}', json={"status": "APPROVED"})
    assert again.status_code == 200
    assert again.get_json()["status"] == "APPROVED"
    assert stock_of("p1") == 0

    db.session.expire_all()
    tx = db.session.get(Transaction, created["id"])
    assert tx.provider == "WOMPI"
    assert tx.provider_tx_id == "wompi_1"
    assert tx.card_last4 == "4242"


def test_approve_with_insufficient_stock_leaves_everything(client, make_product):
    make_product("p1", price_cents=1000, stock=2)
    make_product("p2", name="Product 2", price_cents=500, stock=1)
    first = _create(client, [_line(quantity=2), _line("p2", quantity=1, price_cents=500)], 4900)
    second = _create(client, [_line(quantity=1), _line("p2", quantity=1, price_cents=500)], 3900)

    assert client.patch(f'/transactions/{first["id"]}', json={"status": "APPROVED"}).status_code == 200

    response = client.patch(f'/transactions/{second["id"]}', json={"status": "APPROVED"})

    assert response.status_code == 409
    body = response.get_json()
    assert body["type"] == "InsufficientStock"
    assert sorted(item["productId"] for item in body["items"]) == ["p1", "p2"]
    assert stock_of("p1") == 0
    assert stock_of("p2") == 0
    db.session.expire_all()
    assert db.session.get(Transaction, second["id"]).status == "PENDING"


def test_decline_keeps_stock(client, make_product):
    make_product("p1", price_cents=1000, stock=2)
    created = _create(client, [_line(quantity=1)], 3400)

    response = client.patch(f'/transactions/{created["id"]}', json={"status": "DECLINED"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "DECLINED"
    assert stock_of("p1") == 2


def test_update_errors(client, make_product):
    make_product("p1", price_cents=1000, stock=2)
    created = _create(client, [_line(quantity=1)], 3400)

    empty = client.patch(f'/transactions/{created["id"]}', json={})
    assert empty.status_code == 400
    assert empty.get_json() == {"error": "No fields provided to update", "type": "NothingToUpdate"}

    bad = client.patch(f'/transactions/{created["id"]}', json={"status": "LOST"})
    assert bad.status_code == 400
    assert bad.get_json()["status"] == "LOST"

    missing = client.patch('/transactions/does-not-exist', json={"status": "APPROVED"})
    assert missing.status_code == 404
    assert missing.get_json()["transactionId"] == "does-not-exist"


def test_list_transactions_includes_details(client, make_product):
    make_product("p1", price_cents=1000, stock=5)
    _create(client, [_line(quantity=1)], 3400)
    _create(client, [_line(quantity=2)], 4400)

    response = client.get('/transactions')

    assert response.status_code == 200
    rows = response.get_json()
    assert len(rows) == 2
    assert rows[0]["createdAt"] >= rows[1]["createdAt"]
    first = rows[0]
    assert first["customer"]["fullName"] == "Ana Gomez"
    assert first["delivery"]["addressLine1"] == "Calle 10 # 5-20"
    assert first["items"][0]["productId"] == "p1"


def test_unexpected_failure_returns_500(app, client, monkeypatch):
    repo = app.extensions["transactions_repository"]

    def boom():
        raise RuntimeError("database exploded")

    monkeypatch.setattr(repo, "list_transactions", boom)

    response = client.get('/transactions')

    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}


def test_create_with_oversized_amounts_is_400(client, make_product):
    make_product("p1", price_cents=1000, stock=5)

    response = client.post('/transactions', json=checkout_payload(
        [_line(quantity=1)], 10**20 + 2500, base_fee_cents=10**20, delivery_fee_cents=1500,
    ))

    assert response.status_code == 400
    body = response.get_json()
    assert body["type"] == "InvalidPayload"
    assert "baseFeeCents is too large" in body["details"]
    assert db.session.query(Transaction).count() == 0


def test_patch_with_oversized_text_is_400(client, make_product):
    make_product("p1", price_cents=1000, stock=5)
    created = _create(client, [_line(quantity=1)], 3400)

    response = client.patch(f'/transactions/{created["id"]}', json={"status": "APPROVED", "cardLast4": "424242"})

    assert response.status_code == 400
    assert response.get_json()["details"] == ["cardLast4 is too long (max 4)"]
    assert stock_of("p1") == 5
    db.session.expire_all()
    assert db.session.get(Transaction, created["id"]).status == "PENDING"


def test_patch_with_null_status_is_400(client, make_product):
    make_product("p1", price_cents=1000, stock=5)
    created = _create(client, [_line(quantity=1)], 3400)

    response = client.patch(f'/transactions/{created["id"]}', json={"status": None})

    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid transaction status", "type": "InvalidStatus", "status": "NULL"}
