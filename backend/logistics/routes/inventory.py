# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

# backend/logistics/routes/inventory.py
"""
Inventory ledger routes.

reserve/release take {product_id, client_id, quantity}; both answer 409
when the ledger rule is violated (insufficient stock / over-release).
"""
from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import Inventory
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory,
    require_int,
    validate_payload,
)

INVENTORY_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"client_id", "product_id", "quantity", "warehouse_location"},
    required_on_create={"client_id", "product_id", "quantity"},
)

INVENTORY_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "reserved_quantity", "warehouse_location"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
def list_inventory():
    """All ledger rows, or one client's rows with ?client_id=."""
    client_id = request.args.get("client_id", type=int)
    if client_id is not None:
        rows = inventory_service.get_inventory_by_client(client_id=client_id)
    else:
        rows = inventory_service.get_inventory()
    return {"items": [r.to_dict() for r in rows]}


@inventory_bp.get("/<int:inventory_id>")
def get_inventory_route(inventory_id: int):
    try:
        row = inventory_service.get_inventory_by_id(inventory_id=inventory_id)
    except LogisticsError as e:
        return error_response(e)
    return row.to_dict()


@inventory_bp.post("")
def create_inventory_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Inventory, payload=payload, policy=INVENTORY_CREATE_POLICY, partial=False)
        enforce_rules_inventory(patch)
        row = inventory_service.create_inventory(
            client_id=patch["client_id"],
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            warehouse_location=patch.get("warehouse_location"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory")
        return {"error": "Internal server error"}, 500

    return row.to_dict(), 201


@inventory_bp.put("/<int:inventory_id>")
def update_inventory_route(inventory_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Inventory, payload=payload, policy=INVENTORY_UPDATE_POLICY, partial=True)
        enforce_rules_inventory(patch)
        row = inventory_service.update_inventory(inventory_id=inventory_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory")
        return {"error": "Internal server error"}, 500

    return row.to_dict()


@inventory_bp.delete("/<int:inventory_id>")
def delete_inventory_route(inventory_id: int):
    try:
        inventory_service.delete_inventory(inventory_id=inventory_id)
    except LogisticsError as e:
        return error_response(e)
    return {"ok": True}


def _movement_args(payload: dict) -> dict:
    return {
        "product_id": require_int(payload, "product_id"),
        "client_id": require_int(payload, "client_id"),
        "quantity": require_int(payload, "quantity", positive=True),
    }


@inventory_bp.post("/reserve")
def reserve_inventory_route():
    payload = request.get_json(silent=True) or {}

    try:
        inventory_service.reserve_inventory(**_movement_args(payload))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to reserve inventory")
        return {"error": "Internal server error"}, 500

    return {"ok": True}


@inventory_bp.post("/release")
def release_inventory_route():
    payload = request.get_json(silent=True) or {}

    try:
        inventory_service.release_inventory(**_movement_args(payload))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except LogisticsError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to release inventory")
        return {"error": "Internal server error"}, 500

    return {"ok": True}


@inventory_bp.get("/low-stock")
def low_stock_route():
    """
    Query params:
    - client_id: int (required)
    - threshold: int (optional, inclusive; defaults to LOW_STOCK_THRESHOLD)
    """
    client_id = request.args.get("client_id", type=int)
    if client_id is None:
        return {"error": "client_id is required"}, 400
    threshold = request.args.get("threshold", type=int)

    rows = inventory_service.get_low_stock_items(client_id=client_id, threshold=threshold)
    return {"items": [r.to_dict() for r in rows], "count": len(rows)}
