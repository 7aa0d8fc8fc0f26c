# Overview: Service-layer operations for auth; stub credentials and tokens for the demo platform.

"""
Authentication stub.

Password hashing and session tokens are placeholders: the stored hash is
"hashed_<password>" and tokens are "token_<user id>_<ms timestamp>". Tokens
are issued but not persisted or verified anywhere.
"""

import hmac

from ..errors import AccountDeactivatedError, AuthenticationError, NotFoundError
from ..models import User
from ..repositories import UserRepository
from ..time_utils import epoch_millis
from . import user_service

STUB_HASH_PREFIX = "hashed_"


def hash_password(password: str) -> str:
    return f"{STUB_HASH_PREFIX}{password}"


def verify_password(password: str, password_hash: str) -> bool:
    if not password:
        return False
    return hmac.compare_digest(hash_password(password), password_hash or "")


def issue_token(user: User) -> str:
    return f"token_{user.id}_{epoch_millis()}"


def _auth_response(user: User) -> dict:
    return {"user": user, "token": issue_token(user)}


def register(*, patch: dict, password: str) -> dict:
    """
    Create an account and log it in.

    Raises:
        ConflictError: "User already exists" for a taken email
    """
    user = user_service.create_user(patch=patch, password=password, conflict_message="User already exists")
    return _auth_response(user)


def login(*, email: str, password: str) -> dict:
    """
    Check credentials. Unknown email and wrong password are indistinguishable.

    Raises:
        AuthenticationError: "Invalid credentials"
        AccountDeactivatedError: credentials valid but the account is inactive
    """
    user = user_service.find_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AccountDeactivatedError("Account is deactivated", {"user_id": user.id})
    return _auth_response(user)


def get_current_user(*, user_id: int) -> User:
    """Inactive users are returned as well; login is what gates them."""
    user = UserRepository().get(user_id)
    if user is None:
        raise NotFoundError("User not found", {"user_id": user_id})
    return user
