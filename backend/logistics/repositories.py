# Overview: Per-entity data access over a SQLAlchemy session; the engines depend only on these.

"""
Repositories for the order/inventory core.

The inventory ledger and order engines never touch the session directly:
they receive repositories and run their multi-step work through
``atomic(func)``, which on the SQL side is a locked, retried transaction.
Tests may hand the engines in-memory repositories with the same methods.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func

from .extensions import db
from .models import Inventory, Order, OrderItem, Product, User
from .money import to_money
from .services.concurrency import lock_for_update, run_in_transaction


class SqlAlchemyRepository:
    """Shared CRUD plumbing; subclasses set ``model``."""

    model = None

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def get(self, entity_id: int):
        return self.session.get(self.model, entity_id)

    def get_for_update(self, entity_id: int):
        return lock_for_update(self.session.query(self.model).filter_by(id=entity_id)).first()

    def list_all(self) -> list:
        return self.session.query(self.model).order_by(self.model.id.asc()).all()

    def add(self, entity):
        self.session.add(entity)
        # Flush so the id is assigned and constraint violations surface here
        self.session.flush()
        return entity

    def delete(self, entity) -> None:
        self.session.delete(entity)
        self.session.flush()

    def atomic(self, func):
        return run_in_transaction(func, session=self.session)


class UserRepository(SqlAlchemyRepository):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).first()


class ProductRepository(SqlAlchemyRepository):
    model = Product


class InventoryRepository(SqlAlchemyRepository):
    model = Inventory

    def find_for_update(self, *, product_id: int, client_id: int) -> Optional[Inventory]:
        """First ledger row (lowest id) for the pair, locked."""
        query = (
            self.session.query(Inventory)
            .filter(Inventory.product_id == product_id, Inventory.client_id == client_id)
            .order_by(Inventory.id.asc())
        )
        return lock_for_update(query).first()

    def list_by_client(self, client_id: int) -> List[Inventory]:
        return (
            self.session.query(Inventory)
            .filter(Inventory.client_id == client_id)
            .order_by(Inventory.id.asc())
            .all()
        )

    def list_low_stock(self, *, client_id: int, threshold: int) -> List[Inventory]:
        return (
            self.session.query(Inventory)
            .filter(
                Inventory.client_id == client_id,
                (Inventory.quantity - Inventory.reserved_quantity) <= threshold,
            )
            .order_by(Inventory.id.asc())
            .all()
        )


class OrderRepository(SqlAlchemyRepository):
    model = Order

    def order_number_exists(self, order_number: str) -> bool:
        return (
            self.session.query(Order.id).filter(Order.order_number == order_number).first()
            is not None
        )

    def list_by_client(self, client_id: int) -> List[Order]:
        return (
            self.session.query(Order)
            .filter(Order.client_id == client_id)
            .order_by(Order.id.asc())
            .all()
        )


class OrderItemRepository(SqlAlchemyRepository):
    model = OrderItem

    def list_for_order(self, order_id: int) -> List[OrderItem]:
        return (
            self.session.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id.asc())
            .all()
        )

    def sum_total(self, order_id: int) -> Decimal:
        """COALESCE(SUM(total_price), 0) over the order's items."""
        total = (
            self.session.query(func.coalesce(func.sum(OrderItem.total_price), 0))
            .filter(OrderItem.order_id == order_id)
            .scalar()
        )
        return to_money(total)

    def delete_for_order(self, order_id: int) -> int:
        deleted = (
            self.session.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .delete(synchronize_session="fetch")
        )
        self.session.flush()
        return deleted
