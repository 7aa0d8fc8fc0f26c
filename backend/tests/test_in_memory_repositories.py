"""
Engines over in-memory repositories.

The inventory ledger and order engines only talk to repositories, so the
same rules hold with a dict-backed store and no database at all.
"""

from decimal import Decimal
from itertools import count

import pytest

from logistics.errors import (
    CannotReleaseMoreThanReservedError,
    InsufficientInventoryError,
    NotFoundError,
)
from logistics.models import Product, User
from logistics.money import to_money
from logistics.services.inventory_service import InventoryLedger
from logistics.services.order_service import OrderLifecycle, OrderTotalEngine


class InMemoryRepository:
    """Minimal repository double: ids are assigned on add, atomic() just runs."""

    def __init__(self, rows=()):
        self.rows = {}
        self._ids = count(1)
        for row in rows:
            self.add(row)

    def get(self, entity_id):
        return self.rows.get(entity_id)

    def get_for_update(self, entity_id):
        return self.rows.get(entity_id)

    def list_all(self):
        return [self.rows[k] for k in sorted(self.rows)]

    def add(self, entity):
        if entity.id is None:
            entity.id = next(self._ids)
        self.rows[entity.id] = entity
        return entity

    def delete(self, entity):
        self.rows.pop(entity.id, None)

    def atomic(self, func):
        return func()


class InMemoryInventory(InMemoryRepository):
    def find_for_update(self, *, product_id, client_id):
        for row in self.list_all():
            if row.product_id == product_id and row.client_id == client_id:
                return row
        return None

    def list_low_stock(self, *, client_id, threshold):
        return [
            r for r in self.list_all()
            if r.client_id == client_id and r.quantity - r.reserved_quantity <= threshold
        ]


class InMemoryOrders(InMemoryRepository):
    def order_number_exists(self, order_number):
        return any(o.order_number == order_number for o in self.rows.values())


class InMemoryItems(InMemoryRepository):
    def list_for_order(self, order_id):
        return [i for i in self.list_all() if i.order_id == order_id]

    def sum_total(self, order_id):
        return to_money(sum((i.total_price for i in self.list_for_order(order_id)), Decimal("0")))

    def delete_for_order(self, order_id):
        doomed = self.list_for_order(order_id)
        for item in doomed:
            self.delete(item)
        return len(doomed)


@pytest.fixture
def users():
    return InMemoryRepository([
        User(id=1, email="c@example.com", role="client", first_name="C", last_name="L", password_hash="x"),
        User(id=2, email="a@example.com", role="admin", first_name="A", last_name="D", password_hash="x"),
    ])


@pytest.fixture
def products():
    return InMemoryRepository([
        Product(id=10, sku="P-10", name="Pallet", unit_price=Decimal("99.99")),
        Product(id=11, sku="P-11", name="Crate", unit_price=Decimal("149.99")),
    ])


@pytest.fixture
def ledger(app, users, products):
    return InventoryLedger(inventory=InMemoryInventory(), users=users, products=products)


@pytest.fixture
def lifecycle(app, users, products):
    return OrderLifecycle(orders=InMemoryOrders(), items=InMemoryItems(), users=users, products=products)


class TestLedgerInMemory:
    def test_reserve_release_cycle(self, ledger):
        row = ledger.create(client_id=1, product_id=10, quantity=100)

        ledger.reserve(product_id=10, client_id=1, quantity=20)
        assert (row.quantity, row.reserved_quantity) == (100, 20)

        ledger.release(product_id=10, client_id=1, quantity=10)
        assert (row.quantity, row.reserved_quantity) == (90, 10)

    def test_rules(self, ledger):
        ledger.create(client_id=1, product_id=10, quantity=10)

        with pytest.raises(InsufficientInventoryError):
            ledger.reserve(product_id=10, client_id=1, quantity=15)
        ledger.reserve(product_id=10, client_id=1, quantity=10)
        with pytest.raises(CannotReleaseMoreThanReservedError):
            ledger.release(product_id=10, client_id=1, quantity=15)

    def test_admin_cannot_hold_stock(self, ledger):
        with pytest.raises(NotFoundError, match="Client not found"):
            ledger.create(client_id=2, product_id=10, quantity=1)

    def test_low_stock(self, ledger):
        low = ledger.create(client_id=1, product_id=10, quantity=10)
        ledger.create(client_id=1, product_id=11, quantity=11)
        assert ledger.low_stock(client_id=1) == [low]


class TestOrdersInMemory:
    def test_totals_follow_items(self, lifecycle):
        order = lifecycle.create_order(client_id=1, shipping_address="Dock 4")
        first = lifecycle.add_item(order_id=order.id, product_id=10, quantity=2, unit_price=Decimal("99.99"))
        lifecycle.add_item(order_id=order.id, product_id=11, quantity=1, unit_price=Decimal("149.99"))
        assert order.total_amount == Decimal("349.97")

        assert lifecycle.remove_item(first.id) == Decimal("149.99")
        assert order.total_amount == Decimal("149.99")

    def test_recompute_empty_order(self, lifecycle):
        order = lifecycle.create_order(client_id=1, shipping_address="Dock 4")
        engine = OrderTotalEngine(orders=lifecycle.orders, items=lifecycle.items)
        assert engine.recompute(order.id) == Decimal("0.00")

    def test_delete_cascades(self, lifecycle):
        order = lifecycle.create_order(client_id=1, shipping_address="Dock 4")
        lifecycle.add_item(order_id=order.id, product_id=10, quantity=1, unit_price=1)

        lifecycle.delete_order(order.id)

        assert lifecycle.orders.get(order.id) is None
        assert lifecycle.items.list_for_order(order.id) == []
