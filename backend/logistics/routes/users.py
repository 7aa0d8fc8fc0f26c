# Overview: Flask API routes for user administration; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import User
from ..services import user_service
from ..validation import (
    USER_CHOICES,
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_user,
    validate_payload,
)

USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"email", "first_name", "last_name", "role", "company_name", "phone", "address"},
    required_on_create={"email", "first_name", "last_name", "role"},
    choices=USER_CHOICES,
)

USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"email", "first_name", "last_name", "company_name", "phone", "address", "is_active"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def split_password(payload: dict):
    """Password is not a column; pull it out before column validation."""
    payload = dict(payload)
    return payload, payload.pop("password", None)


@users_bp.get("")
def list_users():
    """All users, or only clients with ?role=client."""
    if request.args.get("role") == "client":
        users = user_service.get_client_users()
    else:
        users = user_service.get_users()
    return {"items": [u.to_dict() for u in users]}


@users_bp.get("/<int:user_id>")
def get_user_route(user_id: int):
    try:
        user = user_service.get_user_by_id(user_id=user_id)
    except LogisticsError as e:
        return error_response(e)
    return user.to_dict()


@users_bp.post("")
def create_user_route():
    payload, password = split_password(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_CREATE_POLICY, partial=False)
        enforce_rules_user(patch, password=password, creating=True)
        user = user_service.create_user(patch=patch, password=password)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return {"error": "Internal server error"}, 500

    return user.to_dict(), 201


@users_bp.put("/<int:user_id>")
def update_user_route(user_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_UPDATE_POLICY, partial=True)
        enforce_rules_user(patch)
        user = user_service.update_user(user_id=user_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except LogisticsError as e:
        return error_response(e)

    return user.to_dict()


@users_bp.delete("/<int:user_id>")
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id=user_id)
    except LogisticsError as e:
        return error_response(e)
    return {"ok": True}
