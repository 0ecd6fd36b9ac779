# backend/waro/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped; a product of another
tenant is reported as not found.

STOCK: stock_quantity is never written here. New products start at 0 and
only the stock adjustment engine moves them.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..errors import ConflictError, ValidationError
from ..models import Product
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .concurrency import run_in_transaction
from .inventory_service import get_product_for_tenant
from waro.time_utils import utcnow

PRODUCT_WRITABLE_FIELDS = {
    "sku",
    "barcode",
    "name",
    "category",
    "product_type",
    "uom",
    "price_cents",
    "cost_cents",
    "tax_rate",
    "min_stock_threshold",
    "max_stock_threshold",
    "supplier_id",
    "active",
}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_WRITABLE_FIELDS,
    required_on_create={"name", "price_cents"},
)
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(writable_fields=PRODUCT_WRITABLE_FIELDS)


def infer_product_type(category: str | None) -> str:
    """
    Derive product_type from a free-text category.

    RAW/INGREDIENT -> RAW_MATERIAL, COMPONENT -> COMPONENT,
    SERVICE -> SERVICE, anything else FINISHED_GOOD.
    """
    upper = (category or "").upper()
    if "RAW" in upper or "INGREDIENT" in upper:
        return "RAW_MATERIAL"
    if "COMPONENT" in upper:
        return "COMPONENT"
    if "SERVICE" in upper:
        return "SERVICE"
    return "FINISHED_GOOD"


def _ensure_codes_unique(tenant_id: str, patch: dict, exclude_id: str | None = None) -> None:
    """SKU and barcode are unique per tenant among non-deleted products."""
    for field, key in (("sku", "inventory.sku_exists"), ("barcode", "inventory.barcode_exists")):
        value = patch.get(field)
        if not value:
            continue
        q = db.session.query(Product.id).filter(
            Product.tenant_id == tenant_id,
            getattr(Product, field) == value,
            Product.soft_delete.is_(False),
        )
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first() is not None:
            raise ConflictError(key, details={field: value})


def create_product(*, tenant_id: str, payload: dict) -> Product:
    """
    Create a product from a client payload.

    Raises:
        ValidationError: payload shape, required fields, or business rules
        ConflictError: SKU or barcode already used in the tenant
    """
    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_CREATE_POLICY,
        partial=False,
    )
    enforce_rules_product(patch)

    if patch.get("category"):
        patch["category"] = patch["category"].upper()
    if not patch.get("product_type"):
        patch["product_type"] = infer_product_type(patch.get("category"))

    def _op():
        _ensure_codes_unique(tenant_id, patch)
        product = Product(tenant_id=tenant_id, stock_quantity=0, **patch)
        db.session.add(product)
        db.session.flush()
        return product

    return run_in_transaction(_op)


def get_product(*, tenant_id: str, product_id: str) -> Product:
    return get_product_for_tenant(tenant_id, product_id)


def list_products(
    *,
    tenant_id: str,
    search: str | None = None,
    category: str | None = None,
    low_stock_only: bool = False,
    page: int = 1,
    limit: int = 50,
    max_limit: int = 500,
) -> tuple[list[Product], int]:
    """Tenant product listing, name order, with optional search and filters."""
    page = max(page or 1, 1)
    limit = min(max(limit or 50, 1), max_limit)

    q = db.session.query(Product).filter(
        Product.tenant_id == tenant_id,
        Product.soft_delete.is_(False),
    )
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.barcode.ilike(like),
        ))
    if category:
        q = q.filter(Product.category == category.upper())
    if low_stock_only:
        q = q.filter(Product.stock_quantity < Product.min_stock_threshold)

    total = q.count()
    products = (
        q.order_by(Product.name.asc(), Product.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return products, total


def update_product(*, tenant_id: str, product_id: str, payload: dict) -> Product:
    """
    Partial update. stock_quantity is not writable; use a stock adjustment.

    Raises ValidationError("validation.no_changes") for an empty payload.
    """
    if isinstance(payload, dict) and not payload:
        raise ValidationError("validation.no_changes")

    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_UPDATE_POLICY,
        partial=True,
    )
    if not patch:
        raise ValidationError("validation.no_changes")
    enforce_rules_product(patch)
    if patch.get("category"):
        patch["category"] = patch["category"].upper()

    def _op():
        product = get_product_for_tenant(tenant_id, product_id)
        _ensure_codes_unique(tenant_id, patch, exclude_id=product.id)
        for k, v in patch.items():
            setattr(product, k, v)
        product.updated_at = utcnow()
        db.session.flush()
        return product

    return run_in_transaction(_op)


def delete_product(*, tenant_id: str, product_id: str) -> Product:
    """Soft delete. The row and its ledger stay; the product stops resolving."""
    def _op():
        product = get_product_for_tenant(tenant_id, product_id)
        product.soft_delete = True
        product.active = False
        product.updated_at = utcnow()
        db.session.flush()
        return product

    return run_in_transaction(_op)


def list_low_stock(*, tenant_id: str) -> list[Product]:
    """Active products strictly below their minimum, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(
            Product.tenant_id == tenant_id,
            Product.soft_delete.is_(False),
            Product.active.is_(True),
            Product.stock_quantity < Product.min_stock_threshold,
        )
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )
