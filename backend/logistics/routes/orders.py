# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

# backend/logistics/routes/orders.py
"""
Order routes.

total_amount is read-only over HTTP: it changes only when items are added
or removed, or when /total reconciles it.
"""
from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import Order, OrderItem
from ..money import money_to_float
from ..services import order_service
from ..validation import (
    ORDER_CHOICES,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
)

ORDER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"client_id", "shipping_address", "billing_address", "notes"},
    required_on_create={"client_id", "shipping_address"},
)

ORDER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "shipping_address", "billing_address", "notes"},
    choices=ORDER_CHOICES,
)

ORDER_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "unit_price"},
    required_on_create={"product_id", "quantity", "unit_price"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
def list_orders():
    client_id = request.args.get("client_id", type=int)
    if client_id is not None:
        orders = order_service.get_orders_by_client(client_id=client_id)
    else:
        orders = order_service.get_orders()
    return {"items": [o.to_dict() for o in orders]}


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order_by_id(order_id=order_id)
    except LogisticsError as e:
        return error_response(e)
    return order.to_dict()


@orders_bp.post("")
def create_order_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_CREATE_POLICY, partial=False)
        order = order_service.create_order(**patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"error": "Internal server error"}, 500

    return order.to_dict(), 201


@orders_bp.put("/<int:order_id>")
def update_order_route(order_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_UPDATE_POLICY, partial=True)
        order = order_service.update_order(order_id=order_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order")
        return {"error": "Internal server error"}, 500

    return order.to_dict()


@orders_bp.delete("/<int:order_id>")
def delete_order_route(order_id: int):
    try:
        order_service.delete_order(order_id=order_id)
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return {"error": "Internal server error"}, 500
    return {"ok": True}


@orders_bp.get("/<int:order_id>/items")
def list_order_items(order_id: int):
    items = order_service.get_order_items(order_id=order_id)
    return {"items": [i.to_dict() for i in items]}


@orders_bp.post("/<int:order_id>/items")
def add_order_item_route(order_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_POLICY, partial=False)
        item = order_service.add_order_item(order_id=order_id, **patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add order item")
        return {"error": "Internal server error"}, 500

    return item.to_dict(), 201


@orders_bp.delete("/items/<int:item_id>")
def remove_order_item_route(item_id: int):
    try:
        order_service.remove_order_item(item_id=item_id)
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to remove order item")
        return {"error": "Internal server error"}, 500
    return {"ok": True}


@orders_bp.post("/<int:order_id>/total")
def calculate_total_route(order_id: int):
    """Recompute and persist the order total from its items."""
    try:
        total = order_service.calculate_order_total(order_id=order_id)
    except LogisticsError as e:
        return error_response(e)
    return {"order_id": order_id, "total_amount": money_to_float(total)}
