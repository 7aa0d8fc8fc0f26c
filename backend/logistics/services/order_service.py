# Overview: Service-layer operations for orders; keeps order totals in step with their items.

# backend/logistics/services/order_service.py
"""
Order invariants (authoritative)

- Order.total_amount == SUM(OrderItem.total_price) for the order, 0 when it
  has no items. It is a write-through cache: every item add/remove ends
  with a recompute inside the same transaction, and callers never set it.
- OrderItem.total_price = quantity x unit_price, unit_price being the price
  supplied when the item is added (not the product's current price).
- Deleting an order deletes its items first, then the order.
- Status is free-form within ORDER_STATUSES; any status may follow any other.

Order numbers are ORD-<ms timestamp>-<9 uppercase alphanumerics>. A clash
with an existing number fails the insert on the unique constraint and the
create is retried with a fresh number.
"""
from __future__ import annotations

import secrets
import string
from decimal import Decimal
from functools import partial

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, OrderNumberCollisionError
from ..models import ORDER_STATUSES, Order, OrderItem
from ..money import ZERO, line_total, to_money
from ..repositories import OrderItemRepository, OrderRepository, ProductRepository, UserRepository
from ..time_utils import epoch_millis, utcnow
from ..validation import ValidationError

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LENGTH = 9
DEFAULT_ORDER_NUMBER_ATTEMPTS = 5

UPDATABLE_FIELDS = ("status", "shipping_address", "billing_address", "notes")


def generate_order_number() -> str:
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LENGTH))
    return f"ORD-{epoch_millis()}-{suffix}"


def _require_positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    return quantity


def _require_positive_price(unit_price) -> Decimal:
    try:
        price = to_money(unit_price)
    except ValueError as exc:
        raise ValidationError("unit_price must be a number") from exc
    if price <= ZERO:
        raise ValidationError("unit_price must be > 0")
    return price


class OrderTotalEngine:
    """Recomputes Order.total_amount from the order's items."""

    def __init__(self, *, orders=None, items=None):
        self.orders = orders if orders is not None else OrderRepository()
        self.items = items if items is not None else OrderItemRepository()

    def apply(self, order: Order) -> Decimal:
        """Recompute for an order already locked by the caller's transaction."""
        total = self.items.sum_total(order.id)
        order.total_amount = total
        order.updated_at = utcnow()
        return total

    def recompute(self, order_id: int) -> Decimal:
        """Stand-alone reconciliation in its own transaction. Idempotent."""
        def _op():
            order = self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", {"order_id": order_id})
            return self.apply(order)

        return self.orders.atomic(_op)


class OrderLifecycle:
    """Order creation, item add/remove, update and cascading delete."""

    def __init__(self, *, orders=None, items=None, users=None, products=None,
                 number_factory=generate_order_number, max_number_attempts: int = DEFAULT_ORDER_NUMBER_ATTEMPTS):
        self.orders = orders if orders is not None else OrderRepository()
        self.items = items if items is not None else OrderItemRepository()
        self.users = users if users is not None else UserRepository()
        self.products = products if products is not None else ProductRepository()
        self.totals = OrderTotalEngine(orders=self.orders, items=self.items)
        self.number_factory = number_factory
        self.max_number_attempts = max_number_attempts

    def create_order(self, *, client_id: int, shipping_address: str,
                     billing_address: str | None = None, notes: str | None = None) -> Order:
        if not shipping_address or not str(shipping_address).strip():
            raise ValidationError("shipping_address cannot be blank")

        def _op(order_number: str):
            # Any existing user may own an order; no role check here
            if self.users.get(client_id) is None:
                raise NotFoundError("Client not found", {"client_id": client_id})
            now = utcnow()
            order = Order(
                client_id=client_id,
                order_number=order_number,
                status="pending",
                total_amount=ZERO,
                shipping_address=shipping_address,
                billing_address=billing_address,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            return self.orders.add(order)

        for attempt in range(1, self.max_number_attempts + 1):
            order_number = self.number_factory()
            try:
                order = self.orders.atomic(partial(_op, order_number))
            except IntegrityError:
                if not self.orders.order_number_exists(order_number):
                    raise
                current_app.logger.warning(
                    "Order number %s already taken (attempt %s of %s)",
                    order_number, attempt, self.max_number_attempts,
                )
                continue
            current_app.logger.info("Created order %s for client %s", order.order_number, client_id)
            return order

        raise OrderNumberCollisionError(
            "Could not allocate a unique order number",
            {"attempts": self.max_number_attempts},
        )

    def add_item(self, *, order_id: int, product_id: int, quantity: int, unit_price) -> OrderItem:
        quantity = _require_positive_quantity(quantity)
        price = _require_positive_price(unit_price)

        def _op():
            order = self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", {"order_id": order_id})
            if self.products.get(product_id) is None:
                raise NotFoundError("Product not found", {"product_id": product_id})

            item = OrderItem(
                order_id=order.id,
                product_id=product_id,
                quantity=quantity,
                unit_price=price,
                total_price=line_total(quantity, price),
                created_at=utcnow(),
            )
            self.items.add(item)
            self.totals.apply(order)
            return item

        return self.orders.atomic(_op)

    def remove_item(self, item_id: int) -> Decimal:
        """Delete one item and return the parent order's new total."""
        def _op():
            item = self.items.get(item_id)
            if item is None:
                raise NotFoundError("Order item not found", {"item_id": item_id})
            order_id = item.order_id
            order = self.orders.get_for_update(order_id)
            self.items.delete(item)
            if order is None:
                return ZERO
            return self.totals.apply(order)

        return self.orders.atomic(_op)

    def update_order(self, order_id: int, patch: dict) -> Order:
        unknown = set(patch) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")
        if "status" in patch and patch["status"] not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status '{patch['status']}'. Must be one of: {', '.join(ORDER_STATUSES)}"
            )

        def _op():
            order = self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", {"order_id": order_id})
            for key, value in patch.items():
                setattr(order, key, value)
            order.updated_at = utcnow()
            return order

        return self.orders.atomic(_op)

    def delete_order(self, order_id: int) -> None:
        def _op():
            order = self.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", {"order_id": order_id})
            # Items reference the order by foreign key
            self.items.delete_for_order(order.id)
            self.orders.delete(order)

        self.orders.atomic(_op)
        current_app.logger.info("Deleted order %s and its items", order_id)


def _lifecycle() -> OrderLifecycle:
    return OrderLifecycle(
        max_number_attempts=current_app.config.get("ORDER_NUMBER_MAX_ATTEMPTS", DEFAULT_ORDER_NUMBER_ATTEMPTS),
    )


def create_order(*, client_id: int, shipping_address: str, billing_address: str | None = None, notes: str | None = None) -> Order:
    return _lifecycle().create_order(
        client_id=client_id,
        shipping_address=shipping_address,
        billing_address=billing_address,
        notes=notes,
    )


def add_order_item(*, order_id: int, product_id: int, quantity: int, unit_price) -> OrderItem:
    return _lifecycle().add_item(order_id=order_id, product_id=product_id, quantity=quantity, unit_price=unit_price)


def remove_order_item(*, item_id: int) -> None:
    _lifecycle().remove_item(item_id)


def calculate_order_total(*, order_id: int) -> Decimal:
    return OrderTotalEngine().recompute(order_id)


def update_order(*, order_id: int, patch: dict) -> Order:
    return _lifecycle().update_order(order_id, patch)


def delete_order(*, order_id: int) -> None:
    _lifecycle().delete_order(order_id)


def get_orders() -> list[Order]:
    return OrderRepository().list_all()


def get_orders_by_client(*, client_id: int) -> list[Order]:
    return OrderRepository().list_by_client(client_id)


def get_order_by_id(*, order_id: int) -> Order:
    order = OrderRepository().get(order_id)
    if order is None:
        raise NotFoundError("Order not found", {"order_id": order_id})
    return order


def get_order_items(*, order_id: int) -> list[OrderItem]:
    return OrderItemRepository().list_for_order(order_id)


def recompute_all_totals() -> dict[int, Decimal]:
    """Reconcile every order's cached total; used by the CLI."""
    engine = OrderTotalEngine()
    return {order.id: engine.recompute(order.id) for order in engine.orders.list_all()}
