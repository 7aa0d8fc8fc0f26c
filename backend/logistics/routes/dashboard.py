# Overview: Flask API routes for dashboards; read-only aggregates rendered as JSON.

from flask import Blueprint, request

from ..money import money_to_float
from ..services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _render(stats: dict) -> dict:
    return {**stats, "totalRevenue": money_to_float(stats["totalRevenue"])}


@dashboard_bp.get("/client/<int:client_id>")
def client_stats(client_id: int):
    return _render(dashboard_service.client_dashboard_stats(client_id=client_id))


@dashboard_bp.get("/admin")
def admin_stats():
    return _render(dashboard_service.admin_dashboard_stats())


@dashboard_bp.get("/revenue")
def revenue():
    """System revenue, or one client's (all statuses) with ?client_id=."""
    client_id = request.args.get("client_id", type=int)
    if client_id is not None:
        total = dashboard_service.revenue_by_client(client_id=client_id)
    else:
        total = dashboard_service.total_system_revenue()
    return {"client_id": client_id, "revenue": money_to_float(total)}


@dashboard_bp.get("/order-status-counts")
def order_status_counts():
    client_id = request.args.get("client_id", type=int)
    return dashboard_service.order_status_counts(client_id=client_id)


@dashboard_bp.get("/delivery-status-counts")
def delivery_status_counts():
    return dashboard_service.delivery_status_counts()
