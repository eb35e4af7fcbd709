def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"] == {"products": 0, "transactions": 0}


def test_version(client):
    body = client.get('/version').get_json()
    assert body["api_version"] == "1.0.0"


def test_cors_echoes_allowed_origin(client):
    response = client.get('/products', headers={"Origin": "http://localhost:5173"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    other = client.get('/products', headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in other.headers


def test_simulated_payment_follows_hint(client):
    response = client.post('/payments/simulate', json={
        "amountCents": 4400,
        "currency": "USD",
        "reference": "REF-ABC123",
        "decisionHint": "declined",
    })
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "DECLINED"
    assert body["id"].startswith("sim_")


def test_simulated_payment_defaults_to_approved(client):
    for hint in (None, "PENDING", "whatever"):
        body = client.post('/payments/simulate', json={"decisionHint": hint}).get_json()
        assert body["status"] == "APPROVED"
