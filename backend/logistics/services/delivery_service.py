# Overview: Service-layer operations for deliveries; shipment records and free-form status tracking.

from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import DELIVERY_STATUSES, Delivery
from ..repositories import OrderRepository
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError
from .concurrency import lock_for_update, transaction

UPDATABLE_FIELDS = ("status", "carrier", "estimated_delivery_date", "actual_delivery_date", "delivery_notes")


def _tracking_taken(tracking_number: str) -> bool:
    return db.session.query(Delivery.id).filter(Delivery.tracking_number == tracking_number).first() is not None


def create_delivery(*, order_id: int, tracking_number: str, carrier: str | None = None, estimated_delivery_date=None) -> Delivery:
    """
    Open a delivery in status "pending" for an existing order.

    Raises:
        NotFoundError: order does not exist
        ConflictError: tracking number already used
    """
    with transaction():
        if OrderRepository().get(order_id) is None:
            raise NotFoundError("Order not found", {"order_id": order_id})
        if _tracking_taken(tracking_number):
            raise ConflictError("Tracking number already exists.")
        now = utcnow()
        delivery = Delivery(
            order_id=order_id,
            tracking_number=tracking_number,
            status="pending",
            carrier=carrier,
            estimated_delivery_date=estimated_delivery_date,
            created_at=now,
            updated_at=now,
        )
        db.session.add(delivery)
        db.session.flush()
    return delivery


def get_deliveries() -> list[Delivery]:
    return db.session.query(Delivery).order_by(Delivery.id.asc()).all()


def get_delivery_by_id(*, delivery_id: int) -> Delivery:
    delivery = db.session.get(Delivery, delivery_id)
    if delivery is None:
        raise NotFoundError(f"Delivery with id {delivery_id} not found", {"delivery_id": delivery_id})
    return delivery


def get_delivery_by_order(*, order_id: int) -> Delivery:
    delivery = (
        db.session.query(Delivery)
        .filter(Delivery.order_id == order_id)
        .order_by(Delivery.id.asc())
        .first()
    )
    if delivery is None:
        raise NotFoundError(f"Delivery for order {order_id} not found", {"order_id": order_id})
    return delivery


def update_delivery(*, delivery_id: int, patch: dict) -> Delivery:
    """Partial update; any status may be set."""
    if "status" in patch and patch["status"] not in DELIVERY_STATUSES:
        raise ValidationError(
            f"Invalid status '{patch['status']}'. Must be one of: {', '.join(DELIVERY_STATUSES)}"
        )
    with transaction():
        delivery = lock_for_update(db.session.query(Delivery).filter_by(id=delivery_id)).first()
        if delivery is None:
            raise NotFoundError(f"Delivery with id {delivery_id} not found", {"delivery_id": delivery_id})
        for key, value in patch.items():
            if key in UPDATABLE_FIELDS:
                setattr(delivery, key, value)
        delivery.updated_at = utcnow()
    return delivery


def get_deliveries_by_status(*, status: str) -> list[Delivery]:
    if status not in DELIVERY_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(DELIVERY_STATUSES)}"
        )
    return (
        db.session.query(Delivery)
        .filter(Delivery.status == status)
        .order_by(Delivery.id.asc())
        .all()
    )


def track_delivery(*, tracking_number: str) -> Delivery:
    delivery = db.session.query(Delivery).filter(Delivery.tracking_number == tracking_number).first()
    if delivery is None:
        raise NotFoundError(
            f"Delivery with tracking number {tracking_number} not found",
            {"tracking_number": tracking_number},
        )
    return delivery
