import pytest

from storefront.extensions import db
from storefront.models import Product, Transaction


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


def test_catalog_seed_is_idempotent(runner):
    result = runner.invoke(args=["catalog", "seed"])
    assert result.exit_code == 0, result.output
    assert "Seeded 3 products" in result.output
    assert db.session.query(Product).count() == 3

    again = runner.invoke(args=["catalog", "seed"])
    assert "SKIP" in again.output
    assert db.session.query(Product).count() == 3


def test_catalog_list(runner, make_product):
    make_product("p1", name="Teclado", price_cents=299900, stock=5)

    result = runner.invoke(args=["catalog", "list"])

    assert result.exit_code == 0
    assert "Teclado" in result.output
    assert "2,999.00" in result.output


def test_transactions_list_empty(runner):
    result = runner.invoke(args=["transactions", "list", "--status", "approved"])
    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_checkout_simulate_without_endpoints(runner, make_product, monkeypatch):
    monkeypatch.delenv("STOREFRONT_API_URL", raising=False)
    monkeypatch.delenv("PAYMENT_PROVIDER_URL", raising=False)
    make_product("p1", price_cents=1000, stock=2)

    result = runner.invoke(args=["checkout", "simulate", "--product-id", "p1", "--quantity", "2"])

    assert result.exit_code == 0, result.output
    assert "Status:    APPROVED" in result.output
    assert "SIMULATED" in result.output
    assert "showing simulated flow" in result.output
    # no API configured, so nothing was stored
    assert db.session.query(Transaction).count() == 0


def test_checkout_simulate_rejects_bad_card(runner, make_product):
    make_product("p1")
    result = runner.invoke(args=["checkout", "simulate", "--product-id", "p1", "--card", "1234"])
    assert result.exit_code != 0
    assert "Only valid VISA or MasterCard numbers." in result.output


def test_checkout_simulate_unknown_product(runner):
    result = runner.invoke(args=["checkout", "simulate", "--product-id", "nope"])
    assert result.exit_code != 0
    assert "Product nope not found" in result.output
