# Overview: Flask API routes for auth operations; stub login/register returning a token.

from flask import Blueprint, current_app, request

from ..errors import LogisticsError, error_response
from ..models import User
from ..services import auth_service
from ..validation import ConflictError, ValidationError, enforce_rules_user, validate_payload
from .users import USER_CREATE_POLICY, split_password

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _auth_body(result: dict) -> dict:
    return {"user": result["user"].to_dict(), "token": result["token"]}


@auth_bp.post("/login")
def login_route():
    payload = request.get_json(silent=True) or {}
    email = payload.get("email")
    password = payload.get("password")

    if not isinstance(email, str) or not email.strip():
        return {"error": "email is required"}, 400
    if not isinstance(password, str) or not password:
        return {"error": "password is required"}, 400

    try:
        result = auth_service.login(email=email.strip(), password=password)
    except LogisticsError as e:
        return error_response(e)

    return _auth_body(result)


@auth_bp.post("/register")
def register_route():
    payload, password = split_password(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_CREATE_POLICY, partial=False)
        enforce_rules_user(patch, password=password, creating=True)
        result = auth_service.register(patch=patch, password=password)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return {"error": "Internal server error"}, 500

    return _auth_body(result), 201


@auth_bp.get("/me/<int:user_id>")
def current_user_route(user_id: int):
    try:
        user = auth_service.get_current_user(user_id=user_id)
    except LogisticsError as e:
        return error_response(e)
    return user.to_dict()
