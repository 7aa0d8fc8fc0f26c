# Overview: Service-layer operations for products; catalog CRUD with SKU uniqueness.

from __future__ import annotations

from ..errors import NotFoundError
from ..models import Product
from ..repositories import ProductRepository
from ..time_utils import utcnow
from ..validation import ConflictError
from .concurrency import transaction

PRODUCT_FIELDS = ("sku", "name", "description", "unit_price", "weight", "dimensions")


def apply_product_patch(p: Product, patch: dict) -> None:
    for key in PRODUCT_FIELDS:
        if key in patch:
            setattr(p, key, patch[key])


def _sku_taken(products: ProductRepository, sku: str, *, exclude_id: int | None = None) -> bool:
    query = products.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If the SKU already exists
    """
    products = ProductRepository()
    with transaction():
        if _sku_taken(products, patch["sku"]):
            raise ConflictError("SKU already exists.")
        now = utcnow()
        p = Product(created_at=now, updated_at=now)
        apply_product_patch(p, patch)
        products.add(p)
    return p


def get_products() -> list[Product]:
    return ProductRepository().list_all()


def get_product_by_id(*, product_id: int) -> Product:
    p = ProductRepository().get(product_id)
    if p is None:
        raise NotFoundError(f"Product with id {product_id} not found", {"product_id": product_id})
    return p


def get_product_by_sku(*, sku: str) -> Product:
    products = ProductRepository()
    p = products.session.query(Product).filter(Product.sku == sku).first()
    if p is None:
        raise NotFoundError(f"Product with SKU {sku} not found", {"sku": sku})
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """Partial update; nullable fields may be cleared with None."""
    products = ProductRepository()
    with transaction():
        p = products.get_for_update(product_id)
        if p is None:
            raise NotFoundError(f"Product with id {product_id} not found", {"product_id": product_id})
        if "sku" in patch and _sku_taken(products, patch["sku"], exclude_id=p.id):
            raise ConflictError("SKU already exists.")
        apply_product_patch(p, patch)
        p.updated_at = utcnow()
    return p


def delete_product(*, product_id: int) -> None:
    """Hard delete. Inventory rows and order items keep their product_id."""
    products = ProductRepository()
    with transaction():
        p = products.get_for_update(product_id)
        if p is None:
            raise NotFoundError(f"Product with id {product_id} not found", {"product_id": product_id})
        products.delete(p)
