"""
Pytest fixtures for storefront backend tests.

Provides the test app on an in-memory database, per-test table wipe,
test client and small catalog helpers.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: insert a product with a fixed id."""
    def _make(product_id="p1", name="Product 1", price_cents=1000, stock=5, image_url=None):
        product = Product(id=product_id, name=name, price_cents=price_cents, stock=stock, image_url=image_url)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def stock_of(product_id: str) -> int:
    """Read stock straight from the database, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(Product, product_id).stock


def checkout_payload(items, amount_cents, base_fee_cents=900, delivery_fee_cents=1500, **extra):
    """POST /transactions body with valid customer and delivery blocks."""
    payload = {
        "items": items,
        "amountCents": amount_cents,
        "baseFeeCents": base_fee_cents,
        "deliveryFeeCents": delivery_fee_cents,
        "customer": {"fullName": "Ana Gomez", "email": "ana@example.com", "phone": "3001234567"},
        "delivery": {"addressLine1": "Calle 10 # 5-20", "city": "Medellin", "state": "Antioquia", "postalCode": "050001"},
    }
    payload.update(extra)
    return payload
