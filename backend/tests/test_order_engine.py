"""
Order total engine and lifecycle tests.

Verifies:
- total_amount always equals the sum of item totals (0 with no items)
- Item unit prices are captured at add time, not read from the product
- Removing and deleting cascade through the total
- Order numbers are unique and collisions are retried
"""

import re
from decimal import Decimal

import pytest

from logistics.errors import NotFoundError, OrderNumberCollisionError
from logistics.extensions import db
from logistics.models import Order, OrderItem
from logistics.money import to_money
from logistics.services import order_service
from logistics.services.order_service import OrderLifecycle, generate_order_number
from logistics.validation import ValidationError


def _order(order_id: int) -> Order:
    db.session.expire_all()
    return db.session.get(Order, order_id)


def _sum_items(order_id: int) -> Decimal:
    return sum(
        (to_money(i.total_price) for i in order_service.get_order_items(order_id=order_id)),
        Decimal("0.00"),
    )


class TestCreateOrder:
    def test_new_order_defaults(self, client_user):
        order = order_service.create_order(
            client_id=client_user.id,
            shipping_address="9 Pier St",
            billing_address="1 Bill Ave",
            notes="fragile",
        )
        assert order.status == "pending"
        assert to_money(order.total_amount) == Decimal("0.00")
        assert order.billing_address == "1 Bill Ave"
        assert order.notes == "fragile"
        assert order_service.get_order_items(order_id=order.id) == []

    def test_order_number_format(self, order):
        assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{9}", order.order_number)

    def test_generated_numbers_differ(self):
        numbers = {generate_order_number() for _ in range(200)}
        assert len(numbers) == 200

    def test_admin_may_own_an_order(self, admin_user):
        order = order_service.create_order(client_id=admin_user.id, shipping_address="HQ")
        assert order.client_id == admin_user.id

    def test_unknown_client(self, db_session):
        with pytest.raises(NotFoundError, match="Client not found"):
            order_service.create_order(client_id=9999, shipping_address="Nowhere")

    def test_blank_shipping_address(self, client_user):
        with pytest.raises(ValidationError):
            order_service.create_order(client_id=client_user.id, shipping_address="  ")

    def test_collision_is_retried_with_fresh_number(self, client_user, order):
        numbers = iter([order.order_number, "ORD-1700000000000-FRESH0001"])
        lifecycle = OrderLifecycle(number_factory=lambda: next(numbers))

        created = lifecycle.create_order(client_id=client_user.id, shipping_address="2 Dock Rd")

        assert created.order_number == "ORD-1700000000000-FRESH0001"
        assert db.session.query(Order).count() == 2

    def test_collision_attempts_are_bounded(self, client_user, order):
        taken = order.order_number
        lifecycle = OrderLifecycle(number_factory=lambda: taken, max_number_attempts=3)

        with pytest.raises(OrderNumberCollisionError):
            lifecycle.create_order(client_id=client_user.id, shipping_address="2 Dock Rd")

        assert db.session.query(Order).count() == 1


class TestOrderItems:
    def test_add_item_updates_total(self, order, product):
        item = order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=2, unit_price=99.99)

        assert to_money(item.total_price) == Decimal("199.98")
        assert to_money(_order(order.id).total_amount) == Decimal("199.98")

    def test_unit_price_is_caller_supplied(self, order, product):
        item = order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=3, unit_price="10.50")

        assert to_money(item.unit_price) == Decimal("10.50")
        assert to_money(item.total_price) == Decimal("31.50")
        assert to_money(product.unit_price) == Decimal("99.99")

    def test_remove_item_leaves_remaining_total(self, order, product, second_product):
        first = order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=2, unit_price=99.99)
        order_service.add_order_item(order_id=order.id, product_id=second_product.id, quantity=1, unit_price=149.99)
        assert to_money(_order(order.id).total_amount) == Decimal("349.97")

        order_service.remove_order_item(item_id=first.id)

        assert to_money(_order(order.id).total_amount) == Decimal("149.99")
        assert len(order_service.get_order_items(order_id=order.id)) == 1

    def test_removing_last_item_resets_total(self, order, product):
        item = order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=1, unit_price=5)
        order_service.remove_order_item(item_id=item.id)

        assert to_money(_order(order.id).total_amount) == Decimal("0.00")

    def test_total_tracks_items_after_every_mutation(self, order, product, second_product):
        added = []
        for qty, price in [(1, "0.10"), (3, "0.20"), (7, "19.99"), (2, "1000.00")]:
            added.append(order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=qty, unit_price=price))
            assert to_money(_order(order.id).total_amount) == _sum_items(order.id)

        for item in added[::2]:
            order_service.remove_order_item(item_id=item.id)
            assert to_money(_order(order.id).total_amount) == _sum_items(order.id)

    def test_add_to_missing_order(self, product):
        with pytest.raises(NotFoundError, match="Order not found"):
            order_service.add_order_item(order_id=9999, product_id=product.id, quantity=1, unit_price=1)

    def test_add_missing_product(self, order):
        with pytest.raises(NotFoundError, match="Product not found"):
            order_service.add_order_item(order_id=order.id, product_id=9999, quantity=1, unit_price=1)
        assert db.session.query(OrderItem).count() == 0

    @pytest.mark.parametrize("quantity,unit_price", [(0, 1), (-1, 1), (1, 0), (1, -2.5), (1, "abc")])
    def test_rejects_non_positive_values(self, order, product, quantity, unit_price):
        with pytest.raises(ValidationError):
            order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=quantity, unit_price=unit_price)

    def test_remove_missing_item(self, db_session):
        with pytest.raises(NotFoundError, match="Order item not found"):
            order_service.remove_order_item(item_id=9999)


class TestCalculateTotal:
    def test_empty_order_totals_zero(self, order):
        assert order_service.calculate_order_total(order_id=order.id) == Decimal("0.00")

    def test_recompute_is_idempotent(self, order, product):
        order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=4, unit_price="12.25")

        first = order_service.calculate_order_total(order_id=order.id)
        second = order_service.calculate_order_total(order_id=order.id)

        assert first == second == Decimal("49.00")
        assert to_money(_order(order.id).total_amount) == Decimal("49.00")

    def test_recompute_repairs_drifted_total(self, order, product):
        order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=1, unit_price="20.00")
        db.session.query(Order).filter_by(id=order.id).update({"total_amount": Decimal("1.00")})
        db.session.commit()

        assert order_service.calculate_order_total(order_id=order.id) == Decimal("20.00")
        assert to_money(_order(order.id).total_amount) == Decimal("20.00")

    def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError, match="Order not found"):
            order_service.calculate_order_total(order_id=9999)


class TestUpdateAndDeleteOrder:
    @pytest.mark.parametrize("status", ["delivered", "cancelled", "pending", "processing"])
    def test_any_status_reachable(self, order, status):
        order_service.update_order(order_id=order.id, patch={"status": "shipped"})
        updated = order_service.update_order(order_id=order.id, patch={"status": status})
        assert updated.status == status

    def test_update_refreshes_updated_at(self, order):
        before = _order(order.id).updated_at
        updated = order_service.update_order(order_id=order.id, patch={"notes": "call ahead"})
        assert updated.notes == "call ahead"
        assert updated.updated_at >= before

    def test_unknown_status_rejected(self, order):
        with pytest.raises(ValidationError):
            order_service.update_order(order_id=order.id, patch={"status": "lost"})

    def test_total_amount_not_writable(self, order):
        with pytest.raises(ValidationError):
            order_service.update_order(order_id=order.id, patch={"total_amount": 5})

    def test_update_missing(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.update_order(order_id=9999, patch={"notes": "x"})

    def test_delete_cascades_items(self, order, product, second_product):
        order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=1, unit_price=1)
        order_service.add_order_item(order_id=order.id, product_id=second_product.id, quantity=2, unit_price=2)

        order_service.delete_order(order_id=order.id)

        with pytest.raises(NotFoundError):
            order_service.get_order_by_id(order_id=order.id)
        assert order_service.get_order_items(order_id=order.id) == []
        assert db.session.query(OrderItem).count() == 0

    def test_delete_leaves_other_orders(self, client_user, order, product):
        other = order_service.create_order(client_id=client_user.id, shipping_address="elsewhere")
        order_service.add_order_item(order_id=other.id, product_id=product.id, quantity=1, unit_price=3)

        order_service.delete_order(order_id=order.id)

        assert len(order_service.get_order_items(order_id=other.id)) == 1
        assert to_money(_order(other.id).total_amount) == Decimal("3.00")

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.delete_order(order_id=9999)


class TestOrderReads:
    def test_orders_by_client(self, client_user, other_client):
        mine = order_service.create_order(client_id=client_user.id, shipping_address="a")
        order_service.create_order(client_id=other_client.id, shipping_address="b")

        assert [o.id for o in order_service.get_orders_by_client(client_id=client_user.id)] == [mine.id]
        assert len(order_service.get_orders()) == 2

    def test_recompute_all_totals(self, order, product):
        order_service.add_order_item(order_id=order.id, product_id=product.id, quantity=2, unit_price="2.50")
        assert order_service.recompute_all_totals() == {order.id: Decimal("5.00")}
