from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

DELIVERY_STATUSES = ("pending", "in_transit", "out_for_delivery", "delivered", "failed")


class Delivery(db.Model):
    """Shipment tracking for an order. One per order in practice; not enforced."""
    __tablename__ = "deliveries"
    __table_args__ = (
        db.UniqueConstraint("tracking_number", name="uq_deliveries_tracking_number"),
        db.Index("ix_deliveries_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    tracking_number = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="pending")
    carrier = db.Column(db.String(120), nullable=True)

    estimated_delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    actual_delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    delivery_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Delivery id={self.id} tracking={self.tracking_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "tracking_number": self.tracking_number,
            "status": self.status,
            "carrier": self.carrier,
            "estimated_delivery_date": to_utc_z(self.estimated_delivery_date),
            "actual_delivery_date": to_utc_z(self.actual_delivery_date),
            "delivery_notes": self.delivery_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
