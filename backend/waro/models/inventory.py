from __future__ import annotations

import uuid

from ..extensions import db
from waro.time_utils import to_utc_z, utcnow


PRODUCT_TYPES = ("FINISHED_GOOD", "RAW_MATERIAL", "COMPONENT", "SERVICE")

# Canonical ledger reasons; free-text input is normalized onto these
MOVEMENT_REASONS = ("SALE", "PURCHASE", "ADJUSTMENT")


def _uuid() -> str:
    return str(uuid.uuid4())


class Product(db.Model):
    """
    Product master data with a materialized stock level.

    MULTI-TENANT: Products are scoped to tenants via tenant_id.

    STOCK:
    stock_quantity is a cache of SUM(inventory_movements.qty_change) for the
    product. It starts at 0 and is only changed by the stock adjustment engine
    (services/inventory_service.py), which writes the matching movement in the
    same transaction. It is never negative.

    SKU / BARCODE:
    Both optional. Uniqueness is per tenant among non-deleted rows and is
    enforced in products_service (a soft-deleted product releases its codes).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_tenant_sku", "tenant_id", "sku"),
        db.Index("ix_products_tenant_barcode", "tenant_id", "barcode"),
        db.Index("ix_products_tenant_active", "tenant_id", "soft_delete", "active"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(128), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False, default="OTHER")

    # FINISHED_GOOD, RAW_MATERIAL, COMPONENT, SERVICE
    product_type = db.Column(db.String(32), nullable=False, default="FINISHED_GOOD")
    uom = db.Column(db.String(16), nullable=False, default="pcs")

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=True)
    tax_rate = db.Column(db.Numeric(6, 3), nullable=False, default=0)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_threshold = db.Column(db.Integer, nullable=False, default=0)
    max_stock_threshold = db.Column(db.Integer, nullable=True)

    supplier_id = db.Column(db.String(64), nullable=True)

    active = db.Column(db.Boolean, nullable=False, default=True)
    soft_delete = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    tenant = db.relationship("Tenant", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} tenant_id={self.tenant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "sku": self.sku,
            "barcode": self.barcode,
            "name": self.name,
            "category": self.category,
            "product_type": self.product_type,
            "uom": self.uom,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
            "tax_rate": float(self.tax_rate) if self.tax_rate is not None else 0.0,
            "stock_quantity": self.stock_quantity,
            "min_stock_threshold": self.min_stock_threshold,
            "max_stock_threshold": self.max_stock_threshold,
            "supplier_id": self.supplier_id,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryMovement(db.Model):
    """
    Append-only stock ledger.

    One row per applied stock adjustment. qty_change is signed (positive =
    stock in). reason is one of MOVEMENT_REASONS. ref_type/ref_id link the
    movement to the document that caused it (e.g. ref_type="sale").

    IMMUTABLE: rows are never updated or deleted. Corrections are new rows.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.Index("ix_movements_tenant_ts", "tenant_id", "ts"),
        db.Index("ix_movements_tenant_product_ts", "tenant_id", "product_id", "ts"),
        db.Index("ix_movements_ref", "ref_type", "ref_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    qty_change = db.Column(db.Integer, nullable=False)

    # SALE, PURCHASE, ADJUSTMENT
    reason = db.Column(db.String(16), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    ref_type = db.Column(db.String(32), nullable=True)
    ref_id = db.Column(db.String(36), nullable=True)

    ts = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")
    store = db.relationship("Store")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "store_id": self.store_id,
            "product_id": self.product_id,
            "qty_change": self.qty_change,
            "reason": self.reason,
            "notes": self.notes,
            "ref_type": self.ref_type,
            "ref_id": self.ref_id,
            "ts": to_utc_z(self.ts),
        }
