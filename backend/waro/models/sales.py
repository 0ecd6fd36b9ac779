from __future__ import annotations

import uuid

from ..extensions import db
from waro.time_utils import to_utc_z, utcnow


PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "REFUNDED")


def _uuid() -> str:
    return str(uuid.uuid4())


class Sale(db.Model):
    """
    Sale header.

    WHY: One row per point-of-sale transaction. Items and the optional payment
    are created in the same DB transaction as the header, together with the
    SALE stock movements for every item.

    payment_status starts PENDING and is advanced by payment provider
    callbacks (outside this service).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "sale_no", name="uq_sales_tenant_sale_no"),
        db.Index("ix_sales_tenant_store_created", "tenant_id", "store_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    cashier_user_id = db.Column(db.String(36), nullable=True, index=True)

    # Human-readable sale number (e.g., "SALE-1760745600000-4821")
    sale_no = db.Column(db.String(64), nullable=False)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=True)
    # PENDING, PAID, FAILED, REFUNDED
    payment_status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    soft_delete = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "store_id": self.store_id,
            "cashier_user_id": self.cashier_user_id,
            "sale_no": self.sale_no,
            "subtotal_cents": self.subtotal_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SaleItem(db.Model):
    """Line item on a sale. Lives and dies (soft delete) with its sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "position", name="uq_sale_items_sale_position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    # Submission order within the sale; reads are ordered by it
    position = db.Column(db.Integer, nullable=False)

    qty = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    soft_delete = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.position"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "qty": self.qty,
            "unit_price_cents": self.unit_price_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
        }


class Payment(db.Model):
    """
    Non-cash payment for a sale (QRIS, e-wallet, card, transfer).

    One payment per sale. Created PENDING alongside the sale; the provider
    callback flow moves it to PAID/FAILED/REFUNDED.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("sale_id", name="uq_payments_sale"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False, index=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)

    method = db.Column(db.String(16), nullable=False, index=True)
    provider = db.Column(db.String(64), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)

    # PENDING, PAID, FAILED, REFUNDED
    status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    sale = db.relationship("Sale", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "sale_id": self.sale_id,
            "method": self.method,
            "provider": self.provider,
            "amount_cents": self.amount_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
