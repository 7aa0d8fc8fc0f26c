"""
Pytest fixtures for the logistics backend tests.

Provides an in-memory database, a per-test table wipe, the Flask test
client, and entity fixtures for clients, products, inventory and orders.
"""

from decimal import Decimal

import pytest

from logistics import create_app
from logistics.extensions import db
from logistics.models import Product, User
from logistics.services import inventory_service, order_service
from logistics.services.auth_service import hash_password
from logistics.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SEED_ENABLED': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


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


def make_user(session, *, email, role="client", first_name="Test", last_name="User",
              password="Password123", is_active=True, **extra) -> User:
    now = utcnow()
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
        created_at=now,
        updated_at=now,
        **extra,
    )
    session.add(user)
    session.commit()
    return user


def make_product(session, *, sku, name=None, unit_price="10.00", **extra) -> Product:
    now = utcnow()
    product = Product(
        sku=sku,
        name=name or f"Product {sku}",
        unit_price=Decimal(unit_price),
        created_at=now,
        updated_at=now,
        **extra,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def client_user(db_session):
    """A user with role client (owns inventory and orders)."""
    return make_user(db_session, email="client@example.com", first_name="Casey", last_name="Client",
                     company_name="Acme Freight")


@pytest.fixture(scope='function')
def other_client(db_session):
    return make_user(db_session, email="other@example.com", first_name="Olive", last_name="Other")


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user(db_session, email="admin@example.com", role="admin", first_name="Ada", last_name="Admin")


@pytest.fixture(scope='function')
def product(db_session):
    return make_product(db_session, sku="SKU-001", name="Widget", unit_price="99.99")


@pytest.fixture(scope='function')
def second_product(db_session):
    return make_product(db_session, sku="SKU-002", name="Gadget", unit_price="149.99")


@pytest.fixture(scope='function')
def inventory_row(client_user, product):
    """Fresh ledger row: quantity=100, reserved=0."""
    return inventory_service.create_inventory(
        client_id=client_user.id,
        product_id=product.id,
        quantity=100,
        warehouse_location="A-01",
    )


@pytest.fixture(scope='function')
def order(client_user):
    """Fresh order with no items."""
    return order_service.create_order(
        client_id=client_user.id,
        shipping_address="1 Dock Rd, Port City",
    )
