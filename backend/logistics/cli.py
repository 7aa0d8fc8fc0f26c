# Overview: Flask CLI command groups for bootstrap, seeding, and reconciliation.

# backend/logistics/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (dev convenience; use `flask db upgrade` for migrations).
#
# Data:
# - python -m flask data seed
#   Idempotent demo accounts (admin@demo.com / client@demo.com).
# - python -m flask data stats
#   Row counts per table.
#
# Orders:
# - python -m flask orders recompute [--order-id 12]
#   Reconcile cached order totals with their items (all orders if omitted).

import click
from flask.cli import with_appcontext

from .errors import NotFoundError
from .extensions import db
from .models import Delivery, Inventory, Order, OrderItem, Product, User
from .money import money_to_float
from .services import order_service, seed_service


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created")


@click.group('data')
def data_group():
    """Seed and inspect data."""


@data_group.command('seed')
@with_appcontext
def seed_command():
    """Create demo users if missing."""
    result = seed_service.seed_database()
    click.echo(f"PASS {result['message']}")


@data_group.command('stats')
@with_appcontext
def stats_command():
    """Print row counts per table."""
    for label, model in (
        ("users", User),
        ("products", Product),
        ("inventory", Inventory),
        ("orders", Order),
        ("order_items", OrderItem),
        ("deliveries", Delivery),
    ):
        click.echo(f"{label}: {db.session.query(model).count()}")


@click.group('orders')
def orders_group():
    """Order maintenance."""


@orders_group.command('recompute')
@click.option('--order-id', type=int, default=None, help='Only this order')
@with_appcontext
def recompute_command(order_id):
    """Recompute cached order totals from their items."""
    if order_id is not None:
        try:
            total = order_service.calculate_order_total(order_id=order_id)
        except NotFoundError as e:
            raise click.ClickException(e.message)
        click.echo(f"Order {order_id}: {money_to_float(total):.2f}")
        return

    totals = order_service.recompute_all_totals()
    for oid, total in totals.items():
        click.echo(f"Order {oid}: {money_to_float(total):.2f}")
    click.echo(f"PASS Recomputed {len(totals)} orders")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(data_group)
    app.cli.add_command(orders_group)
