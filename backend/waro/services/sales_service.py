"""
Sales Service - single-request sale creation

WHY: A POS sale is one unit of work. The header, its lines, the SALE stock
movements for every line and the pending non-cash payment are written in one
transaction: either the whole sale exists with its stock debited, or nothing
was written at all.

ORDER OF CHECKS:
1. Request shape (tenant_id, store_id, items) before touching the database
2. Store belongs to tenant
3. Per-line product existence and stock, inside the transaction
"""

from __future__ import annotations

import random

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Payment, Sale, SaleItem
from ..validation import check_text, validate_sale_items
from waro.time_utils import epoch_millis, utcnow
from .concurrency import lock_for_update, run_in_transaction
from .inventory_service import apply_stock_delta
from .payment_service import (
    create_pending_payment,
    normalize_payment_method,
    requires_payment_record,
)
from .tenant_service import require_store_in_tenant


SALE_REF_TYPE = "sale"


def generate_sale_no() -> str:
    """SALE-<epoch ms>-<0..9999>. Not guaranteed unique; the DB constraint is."""
    return f"SALE-{epoch_millis()}-{random.randint(0, 9999)}"


def create_sale(
    *,
    tenant_id: str | None,
    store_id: str | None,
    items,
    cashier_user_id: str | None = None,
    payment_method: str | None = None,
    provider: str | None = None,
    subtotal_cents: int | None = None,
    discount_cents: int = 0,
    tax_cents: int = 0,
    total_cents: int | None = None,
) -> tuple[Sale, list[SaleItem], Payment | None]:
    """
    Create a sale with its items, stock debits and optional payment.

    Returns (sale, items, payment_or_None).

    Raises:
        ValidationError: missing tenant/store/items, bad item fields
        NotFoundError: store not in tenant, or an item's product missing
        InvariantViolation: an item would drive stock negative
    """
    missing = [
        name for name, value in (("tenant_id", tenant_id), ("store_id", store_id), ("sale_items", items))
        if value is None or value == ""
    ]
    if missing:
        raise ValidationError("sales.missingRequiredFields", suffix=", ".join(missing))
    check_text(tenant_id, "tenant_id")
    check_text(store_id, "store_id")
    check_text(cashier_user_id, "cashier_user_id", optional=True)
    check_text(provider, "provider", optional=True)
    lines = validate_sale_items(items)
    method = normalize_payment_method(payment_method)

    line_totals = [
        line["qty"] * line["unit_price_cents"] - line["discount_cents"]
        for line in lines
    ]
    if subtotal_cents is None:
        subtotal_cents = sum(line_totals)
    if total_cents is None:
        total_cents = subtotal_cents - discount_cents + tax_cents

    def _op():
        store = require_store_in_tenant(store_id, tenant_id)
        now = utcnow()

        sale = Sale(
            tenant_id=tenant_id,
            store_id=store.id,
            cashier_user_id=cashier_user_id,
            sale_no=generate_sale_no(),
            subtotal_cents=subtotal_cents,
            discount_cents=discount_cents,
            tax_cents=tax_cents,
            total_cents=total_cents,
            payment_method=method,
            payment_status="PENDING",
            created_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        sale_items = []
        for position, (line, line_total) in enumerate(zip(lines, line_totals)):
            item = SaleItem(
                sale_id=sale.id,
                product_id=line["product_id"],
                position=position,
                qty=line["qty"],
                unit_price_cents=line["unit_price_cents"],
                discount_cents=line["discount_cents"],
                total_cents=line_total,
            )
            apply_stock_delta(
                tenant_id=tenant_id,
                product_id=line["product_id"],
                quantity_delta=-line["qty"],
                reason="SALE",
                store_id=store.id,
                ref_type=SALE_REF_TYPE,
                ref_id=sale.id,
                occurred_at=now,
            )
            db.session.add(item)
            sale_items.append(item)
        db.session.flush()

        payment = None
        if requires_payment_record(method):
            payment = create_pending_payment(
                tenant_id=tenant_id,
                sale_id=sale.id,
                method=method,
                amount_cents=total_cents,
                provider=provider,
            )
        return sale, sale_items, payment

    return run_in_transaction(_op)


def get_sale(sale_id: str, tenant_id: str | None = None) -> Sale:
    """Non-deleted sale by id, optionally restricted to a tenant."""
    q = db.session.query(Sale).filter(Sale.id == sale_id, Sale.soft_delete.is_(False))
    if tenant_id is not None:
        q = q.filter(Sale.tenant_id == tenant_id)
    sale = q.first()
    if sale is None:
        raise NotFoundError("sales.notFound", details={"sale_id": sale_id})
    return sale


def get_sale_items(sale_id: str) -> list[SaleItem]:
    """Live items in submission order."""
    return (
        db.session.query(SaleItem)
        .filter(SaleItem.sale_id == sale_id, SaleItem.soft_delete.is_(False))
        .order_by(SaleItem.position.asc())
        .all()
    )


def list_sales(
    *,
    tenant_id: str,
    store_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Sale]:
    q = db.session.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.soft_delete.is_(False),
    )
    if store_id:
        q = q.filter(Sale.store_id == store_id)
    return (
        q.order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def delete_sale(*, tenant_id: str, sale_id: str) -> Sale:
    """
    Soft-delete a sale and its items together.

    Sold quantities go back to stock as ADJUSTMENT movements that reference
    the sale, so the ledger still sums to stock_quantity.
    """
    def _op():
        sale = lock_for_update(
            db.session.query(Sale).filter(
                Sale.id == sale_id,
                Sale.tenant_id == tenant_id,
                Sale.soft_delete.is_(False),
            )
        ).first()
        if sale is None:
            raise NotFoundError("sales.notFound", details={"sale_id": sale_id})

        for item in get_sale_items(sale.id):
            apply_stock_delta(
                tenant_id=tenant_id,
                product_id=item.product_id,
                quantity_delta=item.qty,
                reason="ADJUSTMENT",
                store_id=sale.store_id,
                notes=f"Sale {sale.sale_no} deleted",
                ref_type=SALE_REF_TYPE,
                ref_id=sale.id,
            )
            item.soft_delete = True

        sale.soft_delete = True
        sale.updated_at = utcnow()
        db.session.flush()
        return sale

    return run_in_transaction(_op)
