from __future__ import annotations

from ..extensions import db
from ..money import money_to_float
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Catalog master data.

    unit_price here is the list price only; order items capture their own
    unit_price at the time they are added.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    weight = db.Column(db.Numeric(8, 2), nullable=True)
    dimensions = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "unit_price": money_to_float(self.unit_price),
            "weight": money_to_float(self.weight),
            "dimensions": self.dimensions,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Inventory(db.Model):
    """
    Stock ledger row for one (client, product) pair.

    INVARIANT: 0 <= reserved_quantity <= quantity after every reserve/release.
    Available stock is quantity - reserved_quantity and is never stored.

    The pair is not unique: duplicate rows are allowed and reserve/release
    act on the lowest id.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.Index("ix_inventory_client_product", "client_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    reserved_quantity = db.Column(db.Integer, nullable=False, default=0)
    warehouse_location = db.Column(db.String(255), nullable=True)

    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    @property
    def available_quantity(self) -> int:
        return (self.quantity or 0) - (self.reserved_quantity or 0)

    def __repr__(self) -> str:
        return (
            f"<Inventory id={self.id} client_id={self.client_id} product_id={self.product_id} "
            f"qty={self.quantity} reserved={self.reserved_quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "reserved_quantity": self.reserved_quantity,
            "available_quantity": self.available_quantity,
            "warehouse_location": self.warehouse_location,
            "last_updated": to_utc_z(self.last_updated),
            "created_at": to_utc_z(self.created_at),
        }
