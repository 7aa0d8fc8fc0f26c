# Overview: Flask API routes for deliveries operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import Delivery
from ..services import delivery_service
from ..validation import (
    DELIVERY_CHOICES,
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
)

DELIVERY_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"order_id", "tracking_number", "carrier", "estimated_delivery_date"},
    required_on_create={"order_id", "tracking_number"},
)

DELIVERY_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"status", "carrier", "estimated_delivery_date", "actual_delivery_date", "delivery_notes"},
    choices=DELIVERY_CHOICES,
)

deliveries_bp = Blueprint("deliveries", __name__, url_prefix="/api/deliveries")


@deliveries_bp.get("")
def list_deliveries():
    return {"items": [d.to_dict() for d in delivery_service.get_deliveries()]}


@deliveries_bp.get("/<int:delivery_id>")
def get_delivery_route(delivery_id: int):
    try:
        delivery = delivery_service.get_delivery_by_id(delivery_id=delivery_id)
    except LogisticsError as e:
        return error_response(e)
    return delivery.to_dict()


@deliveries_bp.get("/by-order/<int:order_id>")
def get_delivery_by_order_route(order_id: int):
    try:
        delivery = delivery_service.get_delivery_by_order(order_id=order_id)
    except LogisticsError as e:
        return error_response(e)
    return delivery.to_dict()


@deliveries_bp.get("/status/<status>")
def deliveries_by_status_route(status: str):
    try:
        deliveries = delivery_service.get_deliveries_by_status(status=status)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": [d.to_dict() for d in deliveries]}


@deliveries_bp.get("/track/<tracking_number>")
def track_delivery_route(tracking_number: str):
    try:
        delivery = delivery_service.track_delivery(tracking_number=tracking_number)
    except LogisticsError as e:
        return error_response(e)
    return delivery.to_dict()


@deliveries_bp.post("")
def create_delivery_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Delivery, payload=payload, policy=DELIVERY_CREATE_POLICY, partial=False)
        delivery = delivery_service.create_delivery(**patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create delivery")
        return {"error": "Internal server error"}, 500

    return delivery.to_dict(), 201


@deliveries_bp.put("/<int:delivery_id>")
def update_delivery_route(delivery_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Delivery, payload=payload, policy=DELIVERY_UPDATE_POLICY, partial=True)
        delivery = delivery_service.update_delivery(delivery_id=delivery_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)

    return delivery.to_dict()
