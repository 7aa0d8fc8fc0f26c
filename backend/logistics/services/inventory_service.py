# Overview: Service-layer operations for inventory; the stock ledger and its reservation rules.

# backend/logistics/services/inventory_service.py
"""
Inventory ledger invariants (authoritative)

Ledger rows:
- One Inventory row tracks quantity (owned stock) and reserved_quantity
  (soft holds) for a (client, product) pair.
- Available = quantity - reserved_quantity. Never stored.
- Duplicate rows for a pair are allowed; reserve/release use the lowest id.

Business invariants:
- reserve/release keep 0 <= reserved_quantity <= quantity.
- reserve(q) needs available >= q and only raises reserved_quantity.
- release(q) needs reserved_quantity >= q and lowers BOTH quantity and
  reserved_quantity: a release is the fulfillment of a reservation, the
  stock leaves the warehouse.
- update() is a raw edit and does not re-check the invariant.

Concurrency:
- reserve, release, update and delete each run as one transaction that
  locks the affected row (repositories.atomic).
"""
from __future__ import annotations

from flask import current_app

from ..errors import (
    CannotReleaseMoreThanReservedError,
    InsufficientInventoryError,
    NotFoundError,
)
from ..models import Inventory
from ..repositories import InventoryRepository, ProductRepository, UserRepository
from ..time_utils import utcnow
from ..validation import ValidationError

DEFAULT_LOW_STOCK_THRESHOLD = 10

UPDATABLE_FIELDS = ("quantity", "reserved_quantity", "warehouse_location")


def _require_positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    return quantity


def _require_non_negative(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    return value


class InventoryLedger:
    """Stock and reservation state per client/product pair."""

    def __init__(self, *, inventory=None, users=None, products=None):
        self.inventory = inventory if inventory is not None else InventoryRepository()
        self.users = users if users is not None else UserRepository()
        self.products = products if products is not None else ProductRepository()

    def create(self, *, client_id: int, product_id: int, quantity: int = 0, warehouse_location: str | None = None) -> Inventory:
        """Open a ledger row. Client must have role "client"; reserved starts at 0."""
        quantity = _require_non_negative("quantity", quantity)

        def _op():
            client = self.users.get(client_id)
            if client is None or client.role != "client":
                raise NotFoundError("Client not found", {"client_id": client_id})
            if self.products.get(product_id) is None:
                raise NotFoundError("Product not found", {"product_id": product_id})

            now = utcnow()
            row = Inventory(
                client_id=client_id,
                product_id=product_id,
                quantity=quantity,
                reserved_quantity=0,
                warehouse_location=warehouse_location,
                last_updated=now,
                created_at=now,
            )
            return self.inventory.add(row)

        return self.inventory.atomic(_op)

    def reserve(self, *, product_id: int, client_id: int, quantity: int) -> Inventory:
        """Place a soft hold; quantity on hand is untouched."""
        quantity = _require_positive_quantity(quantity)

        def _op():
            row = self.inventory.find_for_update(product_id=product_id, client_id=client_id)
            if row is None:
                raise NotFoundError(
                    "Inventory not found", {"product_id": product_id, "client_id": client_id}
                )

            available = row.quantity - row.reserved_quantity
            if available < quantity:
                raise InsufficientInventoryError(
                    "Insufficient inventory",
                    {"inventory_id": row.id, "available": available, "requested": quantity},
                )

            row.reserved_quantity = row.reserved_quantity + quantity
            row.last_updated = utcnow()
            return row

        row = self.inventory.atomic(_op)
        current_app.logger.info(
            "Reserved %s of product %s for client %s", quantity, product_id, client_id
        )
        return row

    def release(self, *, product_id: int, client_id: int, quantity: int) -> Inventory:
        """Fulfil part of a reservation: quantity and reserved_quantity both drop."""
        quantity = _require_positive_quantity(quantity)

        def _op():
            row = self.inventory.find_for_update(product_id=product_id, client_id=client_id)
            if row is None:
                raise NotFoundError(
                    "Inventory not found", {"product_id": product_id, "client_id": client_id}
                )

            if quantity > row.reserved_quantity:
                raise CannotReleaseMoreThanReservedError(
                    "Cannot release more than reserved quantity",
                    {"inventory_id": row.id, "reserved": row.reserved_quantity, "requested": quantity},
                )

            row.quantity = row.quantity - quantity
            row.reserved_quantity = row.reserved_quantity - quantity
            row.last_updated = utcnow()
            return row

        row = self.inventory.atomic(_op)
        current_app.logger.info(
            "Released %s of product %s for client %s", quantity, product_id, client_id
        )
        return row

    def update(self, inventory_id: int, patch: dict) -> Inventory:
        """Partial edit of quantity / reserved_quantity / warehouse_location."""
        unknown = set(patch) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")
        for key in ("quantity", "reserved_quantity"):
            if key in patch:
                _require_non_negative(key, patch[key])

        def _op():
            row = self.inventory.get_for_update(inventory_id)
            if row is None:
                raise NotFoundError("Inventory not found", {"inventory_id": inventory_id})
            for key, value in patch.items():
                setattr(row, key, value)
            row.last_updated = utcnow()
            return row

        return self.inventory.atomic(_op)

    def delete(self, inventory_id: int) -> None:
        """Remove the row even if it still holds reservations."""
        def _op():
            row = self.inventory.get_for_update(inventory_id)
            if row is None:
                raise NotFoundError("Inventory not found", {"inventory_id": inventory_id})
            self.inventory.delete(row)

        self.inventory.atomic(_op)

    def low_stock(self, *, client_id: int, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[Inventory]:
        """Rows for the client whose available stock is <= threshold (inclusive)."""
        return self.inventory.list_low_stock(client_id=client_id, threshold=threshold)


def _ledger() -> InventoryLedger:
    return InventoryLedger()


def _default_threshold() -> int:
    return current_app.config.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD)


def create_inventory(*, client_id: int, product_id: int, quantity: int = 0, warehouse_location: str | None = None) -> Inventory:
    return _ledger().create(
        client_id=client_id,
        product_id=product_id,
        quantity=quantity,
        warehouse_location=warehouse_location,
    )


def reserve_inventory(*, product_id: int, client_id: int, quantity: int) -> None:
    _ledger().reserve(product_id=product_id, client_id=client_id, quantity=quantity)


def release_inventory(*, product_id: int, client_id: int, quantity: int) -> None:
    _ledger().release(product_id=product_id, client_id=client_id, quantity=quantity)


def update_inventory(*, inventory_id: int, patch: dict) -> Inventory:
    return _ledger().update(inventory_id, patch)


def delete_inventory(*, inventory_id: int) -> None:
    _ledger().delete(inventory_id)


def get_low_stock_items(*, client_id: int, threshold: int | None = None) -> list[Inventory]:
    if threshold is None:
        threshold = _default_threshold()
    return _ledger().low_stock(client_id=client_id, threshold=threshold)


def get_low_stock_items_count(*, client_id: int, threshold: int | None = None) -> int:
    return len(get_low_stock_items(client_id=client_id, threshold=threshold))


def get_inventory() -> list[Inventory]:
    return InventoryRepository().list_all()


def get_inventory_by_client(*, client_id: int) -> list[Inventory]:
    return InventoryRepository().list_by_client(client_id)


def get_inventory_by_id(*, inventory_id: int) -> Inventory:
    row = InventoryRepository().get(inventory_id)
    if row is None:
        raise NotFoundError("Inventory not found", {"inventory_id": inventory_id})
    return row
