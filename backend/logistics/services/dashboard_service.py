# Overview: Service-layer operations for dashboards; read-only aggregates over orders, inventory and deliveries.

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Delivery, Inventory, Order, Product, User
from ..money import to_money

# Revenue on a client dashboard only counts orders that have left the warehouse
CLIENT_REVENUE_STATUSES = ("shipped", "delivered")


def _count(query) -> int:
    return int(query.scalar() or 0)


def _revenue(*filters) -> Decimal:
    total = (
        db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
        .filter(*filters)
        .scalar()
    )
    return to_money(total)


def client_dashboard_stats(*, client_id: int, low_stock_threshold: int | None = None) -> dict:
    if low_stock_threshold is None:
        low_stock_threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    order_count = db.session.query(func.count(Order.id)).filter(Order.client_id == client_id)
    return {
        "totalOrders": _count(order_count),
        "pendingOrders": _count(order_count.filter(Order.status == "pending")),
        "deliveredOrders": _count(order_count.filter(Order.status == "delivered")),
        "totalRevenue": _revenue(
            Order.client_id == client_id,
            Order.status.in_(CLIENT_REVENUE_STATUSES),
        ),
        "lowStockItems": _count(
            db.session.query(func.count(Inventory.id)).filter(
                Inventory.client_id == client_id,
                (Inventory.quantity - Inventory.reserved_quantity) <= low_stock_threshold,
            )
        ),
    }


def admin_dashboard_stats() -> dict:
    return {
        "totalClients": _count(db.session.query(func.count(User.id)).filter(User.role == "client")),
        "totalOrders": _count(db.session.query(func.count(Order.id))),
        "totalRevenue": _revenue(),
        "pendingDeliveries": _count(
            db.session.query(func.count(Delivery.id)).filter(Delivery.status == "pending")
        ),
        "totalProducts": _count(db.session.query(func.count(Product.id))),
    }


def revenue_by_client(*, client_id: int) -> Decimal:
    """All statuses, unlike the client dashboard figure."""
    return _revenue(Order.client_id == client_id)


def total_system_revenue() -> Decimal:
    return _revenue()


def order_status_counts(*, client_id: int | None = None) -> dict[str, int]:
    """Counts per status present; statuses with no orders are omitted."""
    query = db.session.query(Order.status, func.count(Order.id))
    if client_id is not None:
        query = query.filter(Order.client_id == client_id)
    rows = query.group_by(Order.status).all()
    return {status: int(count) for status, count in rows}


def delivery_status_counts() -> dict[str, int]:
    rows = db.session.query(Delivery.status, func.count(Delivery.id)).group_by(Delivery.status).all()
    return {status: int(count) for status, count in rows}
