# Overview: Service-layer operations for users; account CRUD with email uniqueness.

from __future__ import annotations

from ..errors import NotFoundError
from ..models import User
from ..repositories import UserRepository
from ..time_utils import utcnow
from ..validation import ConflictError
from .concurrency import transaction

UPDATABLE_FIELDS = ("email", "first_name", "last_name", "company_name", "phone", "address", "is_active")


def _not_found(user_id: int) -> NotFoundError:
    return NotFoundError(f"User with id {user_id} not found", {"user_id": user_id})


def find_user_by_email(email: str) -> User | None:
    return UserRepository().get_by_email(email)


def create_user(*, patch: dict, password: str, conflict_message: str = "Email already exists") -> User:
    """
    Create a user from a validated patch dict.

    The password is stored through the auth stub hash.
    """
    from .auth_service import hash_password

    users = UserRepository()
    with transaction():
        if users.get_by_email(patch["email"]) is not None:
            raise ConflictError(conflict_message)

        now = utcnow()
        user = User(
            email=patch["email"],
            password_hash=hash_password(password),
            first_name=patch["first_name"],
            last_name=patch["last_name"],
            role=patch["role"],
            company_name=patch.get("company_name"),
            phone=patch.get("phone"),
            address=patch.get("address"),
            is_active=patch.get("is_active", True),
            created_at=now,
            updated_at=now,
        )
        users.add(user)
    return user


def get_users() -> list[User]:
    return UserRepository().list_all()


def get_client_users() -> list[User]:
    return (
        UserRepository().session.query(User)
        .filter(User.role == "client")
        .order_by(User.id.asc())
        .all()
    )


def get_user_by_id(*, user_id: int) -> User:
    user = UserRepository().get(user_id)
    if user is None:
        raise _not_found(user_id)
    return user


def update_user(*, user_id: int, patch: dict) -> User:
    """Partial update; role and password are not editable here."""
    users = UserRepository()
    with transaction():
        user = users.get_for_update(user_id)
        if user is None:
            raise _not_found(user_id)

        new_email = patch.get("email")
        if new_email is not None and new_email != user.email:
            other = users.get_by_email(new_email)
            if other is not None and other.id != user.id:
                raise ConflictError("Email already exists")

        for key, value in patch.items():
            if key in UPDATABLE_FIELDS:
                setattr(user, key, value)
        user.updated_at = utcnow()
    return user


def delete_user(*, user_id: int) -> None:
    """Hard delete. Inventory and orders referencing the user are not touched."""
    users = UserRepository()
    with transaction():
        user = users.get_for_update(user_id)
        if user is None:
            raise _not_found(user_id)
        users.delete(user)
