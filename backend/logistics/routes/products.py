# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import Product
from ..services import product_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "description", "unit_price", "weight", "dimensions"},
    required_on_create={"sku", "name", "unit_price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    return {"items": [p.to_dict() for p in product_service.get_products()]}


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        p = product_service.get_product_by_id(product_id=product_id)
    except LogisticsError as e:
        return error_response(e)
    return p.to_dict()


@products_bp.get("/by-sku/<sku>")
def get_product_by_sku_route(sku: str):
    try:
        p = product_service.get_product_by_sku(sku=sku)
    except LogisticsError as e:
        return error_response(e)
    return p.to_dict()


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = product_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = product_service.update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except LogisticsError as e:
        return error_response(e)

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        product_service.delete_product(product_id=product_id)
    except LogisticsError as e:
        return error_response(e)
    return {"ok": True}
