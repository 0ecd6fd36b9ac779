# Overview: Stock adjustment engine and movement ledger queries.

# backend/waro/services/inventory_service.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, update

from ..extensions import db
from ..errors import InvariantViolation, NotFoundError, ValidationError
from ..models import InventoryMovement, Product
from ..models.inventory import MOVEMENT_REASONS
from ..validation import check_text, is_strict_int
from waro.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .tenant_service import resolve_store_for_tenant
"""
WarO Inventory Invariants (authoritative)

Stock model:
- Product.stock_quantity is a materialized cache of the movement ledger:
  stock_quantity == SUM(inventory_movements.qty_change) for that product.
- Every change to stock_quantity writes exactly one InventoryMovement in the
  same DB transaction. Neither write exists without the other.
- stock_quantity is never negative. An adjustment that would drive it below
  zero is rejected with no side effects.

Concurrency:
- The product row is locked (SELECT ... FOR UPDATE; BEGIN IMMEDIATE on SQLite)
  and the write itself is a conditional UPDATE guarded by
  stock_quantity + delta >= 0, so two concurrent debits can never both pass
  against the same stale read.
- Adjustments to different products touch different rows and do not block
  each other on row-locking databases.

Ledger:
- Movements are append-only. reason is one of SALE, PURCHASE, ADJUSTMENT.
- ts is server time (UTC-naive). Reads order newest-first.
"""

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 500

# Checked in order; first hit wins
_REASON_KEYWORDS = (
    ("SALE", ("SALE",)),
    ("PURCHASE", ("PURCHASE", "RESTOCK", "BUY")),
    ("ADJUSTMENT", ("ADJUST", "CORRECT", "TRANSFER")),
)


@dataclass
class StockAdjustment:
    """Result of one applied stock change."""
    product: Product
    old_stock_quantity: int
    new_stock_quantity: int
    movement: InventoryMovement

    def to_dict(self) -> dict:
        return {
            "product": {
                "id": self.product.id,
                "name": self.product.name,
                "old_stock_quantity": self.old_stock_quantity,
                "new_stock_quantity": self.new_stock_quantity,
                "quantity_adjusted": self.movement.qty_change,
            },
            "movement": self.movement.to_dict(),
        }


def normalize_reason(reason: str | None) -> str:
    """
    Map an operator-supplied reason onto a canonical ledger reason.

    Canonical values pass through. Free text is matched case-insensitively by
    substring: SALE, then PURCHASE/RESTOCK/BUY, then ADJUST/CORRECT/TRANSFER.
    Anything else (including None/blank) is ADJUSTMENT.
    """
    if not reason:
        return "ADJUSTMENT"
    upper = str(reason).strip().upper()
    if upper in MOVEMENT_REASONS:
        return upper
    for canonical, keywords in _REASON_KEYWORDS:
        if any(k in upper for k in keywords):
            return canonical
    return "ADJUSTMENT"


def coerce_quantity(value, field: str = "quantity") -> int:
    """
    Accept a JSON whole number.

    5 and 5.0 both mean 5. Bools, fractional values and numeric strings are
    rejected: a client that sends "5" has a type bug, and silently accepting
    it hides that.
    """
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not is_strict_int(value):
        raise ValidationError("validation.invalidFormat", suffix=f"{field} must be an integer")
    return value


def get_product_for_tenant(tenant_id: str, product_id: str, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter(
        Product.id == product_id,
        Product.tenant_id == tenant_id,
        Product.soft_delete.is_(False),
    )
    if lock:
        query = lock_for_update(query).populate_existing()
    product = query.first()
    if product is None:
        raise NotFoundError("inventory.product_not_found", details={"product_id": product_id})
    return product


def apply_stock_delta(
    *,
    tenant_id: str,
    product_id: str,
    quantity_delta: int,
    reason: str,
    store_id: str,
    notes: str | None = None,
    ref_type: str | None = None,
    ref_id: str | None = None,
    occurred_at: datetime | None = None,
) -> StockAdjustment:
    """Core stock change without transaction boundaries.

    The caller owns the transaction (adjust_stock() or the sale coordinator)
    and must roll back if this raises. reason must already be canonical.
    """
    product = get_product_for_tenant(tenant_id, product_id, lock=True)

    old_stock = product.stock_quantity or 0
    new_stock = old_stock + quantity_delta
    if new_stock < 0:
        raise InvariantViolation(
            "inventory.negative_stock_error",
            details={
                "product_id": product_id,
                "current_stock": old_stock,
                "requested_change": quantity_delta,
            },
        )

    now = occurred_at or utcnow()
    stmt = (
        update(Product)
        .where(
            Product.id == product.id,
            Product.stock_quantity + quantity_delta >= 0,
        )
        .values(
            stock_quantity=Product.stock_quantity + quantity_delta,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount != 1:
        # Lost the race on a database without row locks
        raise InvariantViolation(
            "inventory.negative_stock_error",
            details={"product_id": product_id, "requested_change": quantity_delta},
        )

    movement = InventoryMovement(
        tenant_id=tenant_id,
        store_id=store_id,
        product_id=product.id,
        qty_change=quantity_delta,
        reason=reason,
        notes=notes,
        ref_type=ref_type,
        ref_id=ref_id,
        ts=now,
    )
    db.session.add(movement)
    db.session.flush()
    db.session.refresh(product)

    return StockAdjustment(
        product=product,
        old_stock_quantity=product.stock_quantity - quantity_delta,
        new_stock_quantity=product.stock_quantity,
        movement=movement,
    )


def adjust_stock(
    *,
    tenant_id: str,
    product_id: str,
    quantity_delta,
    reason: str | None,
    notes: str | None = None,
    store_id: str | None = None,
    ref_type: str | None = None,
    ref_id: str | None = None,
) -> StockAdjustment:
    """
    Apply one stock change to one product and record it in the ledger.

    Raises:
    - ValidationError if quantity_delta is not a whole number, or an id or
      notes value is not a string
    - NotFoundError if the product (or given store) is not the tenant's
    - InvariantViolation if stock would go negative (nothing is written)
    """
    check_text(product_id, "product_id")
    check_text(store_id, "store_id", optional=True)
    check_text(notes, "notes", optional=True)
    quantity_delta = coerce_quantity(quantity_delta)
    canonical = normalize_reason(reason)

    def _op():
        store = resolve_store_for_tenant(tenant_id, store_id)
        return apply_stock_delta(
            tenant_id=tenant_id,
            product_id=product_id,
            quantity_delta=quantity_delta,
            reason=canonical,
            store_id=store.id,
            notes=notes,
            ref_type=ref_type,
            ref_id=ref_id,
        )

    return run_in_transaction(_op)


def get_ledger_quantity(tenant_id: str, product_id: str) -> int:
    """SUM(qty_change) over every movement for the product."""
    total = db.session.query(
        func.coalesce(func.sum(InventoryMovement.qty_change), 0)
    ).filter(
        InventoryMovement.tenant_id == tenant_id,
        InventoryMovement.product_id == product_id,
    ).scalar()
    return int(total or 0)


def reconcile_stock(tenant_id: str | None = None) -> list[dict]:
    """
    Compare each product's cached stock_quantity with its ledger sum.

    Returns one entry per product that disagrees (empty list when consistent).
    Soft-deleted products are included: their ledger still has to add up.
    """
    ledger = (
        db.session.query(
            InventoryMovement.product_id.label("product_id"),
            func.sum(InventoryMovement.qty_change).label("ledger_qty"),
        )
        .group_by(InventoryMovement.product_id)
        .subquery()
    )

    q = db.session.query(
        Product.id,
        Product.tenant_id,
        Product.name,
        Product.stock_quantity,
        func.coalesce(ledger.c.ledger_qty, 0),
    ).outerjoin(ledger, ledger.c.product_id == Product.id)
    if tenant_id is not None:
        q = q.filter(Product.tenant_id == tenant_id)

    drift = []
    for pid, tid, name, stock, ledger_qty in q.order_by(Product.tenant_id, Product.name).all():
        if int(stock or 0) != int(ledger_qty or 0):
            drift.append({
                "product_id": pid,
                "tenant_id": tid,
                "name": name,
                "stock_quantity": int(stock or 0),
                "ledger_quantity": int(ledger_qty or 0),
            })
    return drift


def _movement_filters(
    tenant_id: str,
    product_id: str | None,
    reason: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
) -> list:
    filters = [InventoryMovement.tenant_id == tenant_id]
    if product_id:
        filters.append(InventoryMovement.product_id == product_id)
    if reason:
        filters.append(InventoryMovement.reason == reason.strip().upper())
    if date_from is not None:
        filters.append(InventoryMovement.ts >= date_from)
    if date_to is not None:
        filters.append(InventoryMovement.ts <= date_to)
    return filters


def list_movements(
    *,
    tenant_id: str,
    product_id: str | None = None,
    reason: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> tuple[list[dict], int]:
    """
    Newest-first page of ledger rows with product name/SKU.

    The count runs as a separate query with the same predicate; it is not
    read in the same snapshot as the page.
    """
    page = page if page and page > 0 else DEFAULT_PAGE
    limit = limit if limit and limit > 0 else DEFAULT_LIMIT
    limit = min(limit, MAX_LIMIT)

    filters = _movement_filters(tenant_id, product_id, reason, date_from, date_to)

    rows = (
        db.session.query(InventoryMovement, Product.name, Product.sku)
        .join(Product, InventoryMovement.product_id == Product.id)
        .filter(*filters)
        .order_by(InventoryMovement.ts.desc(), InventoryMovement.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    total = db.session.query(func.count(InventoryMovement.id)).filter(*filters).scalar() or 0

    entries = []
    for movement, product_name, product_sku in rows:
        entry = movement.to_dict()
        entry["product_name"] = product_name
        entry["product_sku"] = product_sku
        entries.append(entry)
    return entries, int(total)
