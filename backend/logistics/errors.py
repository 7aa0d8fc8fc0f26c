# Overview: Domain error taxonomy raised by services; routes map these to HTTP codes.

from __future__ import annotations


class LogisticsError(Exception):
    """Base class for domain failures; message is safe to show to callers."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(LogisticsError):
    """A referenced client, product, order, item, inventory row, user or delivery is missing."""


class InventoryError(LogisticsError):
    """Stock ledger rule violation."""


class InsufficientInventoryError(InventoryError):
    """Reservation exceeds available stock (quantity - reserved_quantity)."""


class CannotReleaseMoreThanReservedError(InventoryError):
    """Release exceeds the currently reserved quantity."""


class OrderNumberCollisionError(LogisticsError):
    """Every generated order number clashed with an existing one."""


class AuthenticationError(LogisticsError):
    """Credentials did not match a user."""


class AccountDeactivatedError(AuthenticationError):
    """Credentials matched a user whose account is inactive."""


def http_status_for(exc: LogisticsError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, AccountDeactivatedError):
        return 403
    if isinstance(exc, AuthenticationError):
        return 401
    return 409


def error_response(exc: LogisticsError) -> tuple[dict, int]:
    return {"error": exc.message}, http_status_for(exc)
