# backend/waro/routes/sales.py
"""
Sales routes.

POST creates the whole sale (header, items, stock debits, pending payment)
in one transaction. The tenant and store are named in the body; the store
must belong to the tenant.
"""
import re

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..errors import StoreError, ValidationError
from ..i18n import t
from ..services import sales_service
from ..services.payment_service import get_payment_for_sale
from ..validation import optional_cents, parse_positive_int


sales_bp = Blueprint("sales", __name__, url_prefix="/v1/sales")

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _sale_payload(sale, items, payment=None) -> dict:
    body = sale.to_dict()
    body["sale_items"] = [item.to_dict() for item in items]
    if payment is not None:
        body["payment"] = payment.to_dict()
    return body


@sales_bp.post("")
def create_sale_route():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("sales.missingRequiredFields", suffix="tenant_id, store_id, sale_items")

    try:
        sale, items, payment = sales_service.create_sale(
            tenant_id=payload.get("tenant_id"),
            store_id=payload.get("store_id"),
            items=payload.get("sale_items"),
            cashier_user_id=payload.get("cashier_user_id"),
            payment_method=payload.get("payment_method"),
            provider=payload.get("provider"),
            subtotal_cents=optional_cents(payload, "subtotal_cents", None),
            discount_cents=optional_cents(payload, "discount_cents", 0),
            tax_cents=optional_cents(payload, "tax_cents", 0),
            total_cents=optional_cents(payload, "total_cents", None),
        )
    except StoreError as e:
        raise StoreError("sales.createError", details=e.details) from e

    body = _sale_payload(sale, items, payment)
    body["message"] = t("sales.created")
    return body, 201


@sales_bp.get("/<sale_id>")
def get_sale_route(sale_id: str):
    if not UUID_RE.match(sale_id):
        raise ValidationError("validation.invalidFormat")

    sale = sales_service.get_sale(sale_id)
    items = sales_service.get_sale_items(sale.id)
    return _sale_payload(sale, items, get_payment_for_sale(sale.id))


@sales_bp.get("")
def list_sales_route():
    tenant_id = request.args.get("tenant_id")
    if not tenant_id:
        raise ValidationError("validation.required", suffix="tenant_id")

    limit = parse_positive_int(request.args.get("limit"), 50)
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except ValueError:
        offset = 0

    sales = sales_service.list_sales(
        tenant_id=tenant_id,
        store_id=request.args.get("store_id") or None,
        limit=limit,
        offset=offset,
    )
    return {
        "sales": [s.to_dict() for s in sales],
        "pagination": {"limit": limit, "offset": offset, "count": len(sales)},
    }


@sales_bp.delete("/<sale_id>")
@require_auth
def delete_sale_route(sale_id: str):
    """Soft delete; sold quantities are returned to stock."""
    if not UUID_RE.match(sale_id):
        raise ValidationError("validation.invalidFormat")

    sales_service.delete_sale(tenant_id=g.tenant_id, sale_id=sale_id)
    return {"message": t("sales.deleted")}
