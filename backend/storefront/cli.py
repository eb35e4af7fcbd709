# Overview: Flask CLI command groups for bootstrap, catalog and checkout inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed
#   Insert the demo products when the catalog is empty.
# - python -m flask catalog list
#   List products with price and stock.
#
# Transactions:
# - python -m flask transactions list [--status APPROVED]
#   List transactions, newest first.
#
# Checkout:
# - python -m flask checkout simulate --product-id p1 --quantity 2 --card 4242424242424242
#   Run the full checkout sequence against STOREFRONT_API_URL / PAYMENT_PROVIDER_URL.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, Transaction, TRANSACTION_STATUSES
from .checkout import (
    Cart,
    CartItem,
    CardForm,
    CheckoutGateway,
    CustomerForm,
    DeliveryForm,
    run_checkout,
    validate_checkout_form,
)

DEMO_PRODUCTS = [
    {
        "name": "Auriculares Bluetooth",
        "description": "Over-ear wireless headphones with noise cancelling.",
        "image_url": "https://picsum.photos/seed/headphones/600/400",
        "price_cents": 199900,
        "stock": 8,
    },
    {
        "name": "Teclado Mecánico",
        "description": "Mechanical keyboard with hot-swappable switches.",
        "image_url": "https://picsum.photos/seed/keyboard/600/400",
        "price_cents": 299900,
        "stock": 5,
    },
    {
        "name": "Mouse Inalámbrico",
        "description": "Ergonomic wireless mouse.",
        "image_url": "https://picsum.photos/seed/mouse/600/400",
        "price_cents": 149900,
        "stock": 10,
    },
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables (use `flask db upgrade` for managed schemas)."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask catalog seed' for demo data.")


@click.group('catalog')
def catalog_group():
    """Product catalog commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert demo products. Does nothing when products already exist."""
    if db.session.query(Product).count() > 0:
        click.echo("SKIP Catalog already has products.")
        return

    for data in DEMO_PRODUCTS:
        db.session.add(Product(**data))
    db.session.commit()
    click.echo(f"PASS Seeded {len(DEMO_PRODUCTS)} products.")


@catalog_group.command('list')
@with_appcontext
def list_products_cli():
    """
    List all products.

    Example:
        flask catalog list
    """
    products = db.session.query(Product).order_by(Product.created_at.desc(), Product.name).all()

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Name':<30} {'Price':>12} {'Stock':>6}")
    click.echo("="*90)

    for p in products:
        click.echo(f"{p.id:<38} {p.name[:30]:<30} {p.price_cents / 100:>12,.2f} {p.stock:>6}")


@click.group('transactions')
def transactions_group():
    """Transaction inspection commands."""


@transactions_group.command('list')
@click.option('--status', type=click.Choice(TRANSACTION_STATUSES, case_sensitive=False), help='Filter by status')
@with_appcontext
def list_transactions_cli(status):
    """
    List transactions, newest first.

    Example:
        flask transactions list
        flask transactions list --status APPROVED
    """
    query = db.session.query(Transaction)
    if status:
        query = query.filter_by(status=status.upper())

    transactions = query.order_by(Transaction.created_at.desc()).all()

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Reference':<12} {'Status':<10} {'Amount':>12} {'Items':>6} {'Provider':<12} {'Created'}")
    click.echo("="*100)

    for t in transactions:
        provider = t.provider or "-"
        item_count = sum(item.quantity for item in t.items)
        click.echo(
            f"{t.reference:<12} {t.status:<10} {t.amount_cents / 100:>12,.2f} {item_count:>6} "
            f"{provider:<12} {t.created_at:%Y-%m-%d %H:%M}"
        )


@click.group('checkout')
def checkout_group():
    """Checkout client commands."""


@checkout_group.command('simulate')
@click.option('--product-id', required=True, help='Product to buy')
@click.option('--quantity', type=int, default=1, show_default=True)
@click.option('--card', 'card_number', default='4242424242424242', show_default=True,
              help='Card number; even last digit approves in simulated mode')
@click.option('--exp-month', default='12', show_default=True)
@click.option('--exp-year', default='30', show_default=True)
@click.option('--cvc', default='123', show_default=True)
@with_appcontext
def simulate_checkout(product_id, quantity, card_number, exp_month, exp_year, cvc):
    """
    Run a checkout for one product with demo customer data.

    Example:
        flask checkout simulate --product-id p1 --quantity 2
    """
    product = db.session.get(Product, product_id)
    if not product:
        raise click.ClickException(f"Product {product_id} not found")

    cart = Cart()
    cart.add(CartItem(
        product_id=product.id,
        name=product.name,
        price_cents=product.price_cents,
        quantity=max(1, quantity),
        image_url=product.image_url,
    ))
    customer = CustomerForm(full_name="Demo Customer", email="demo@example.com", phone="3001234567")
    delivery = DeliveryForm(address_line1="Calle 1 # 2-3", city="Bogota", state="Cundinamarca", postal_code="110111")
    card = CardForm(card_number=card_number, exp_month=exp_month, exp_year=exp_year, cvc=cvc,
                    holder_name="DEMO CUSTOMER")

    errors = validate_checkout_form(customer, delivery, card)
    if errors:
        for field_name, message in errors.items():
            click.echo(f"FAIL {field_name}: {message}")
        raise click.ClickException("Checkout form is invalid")

    gateway = CheckoutGateway.from_env()
    try:
        outcome = run_checkout(
            cart, customer, delivery, card, gateway,
            products=[product.to_dict()],
            base_fee_cents=current_app.config["BASE_FEE_CENTS"],
            delivery_fee_cents=current_app.config["DELIVERY_FEE_CENTS"],
        )
    finally:
        gateway.close()

    click.echo(f"Reference: {outcome.reference or '-'}")
    click.echo(f"Status:    {outcome.status}")
    click.echo(f"Provider:  {outcome.provider or '-'}")
    if outcome.notice:
        click.echo(f"WARN {outcome.notice}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(transactions_group)
    app.cli.add_command(checkout_group)
