# backend/waro/routes/inventory.py
"""
Inventory routes: product catalog, stock adjustments, low stock, movements.

SECURITY: All routes require a bearer session. The tenant comes from the
session (g.tenant_id), never from the request body or query string.

Time semantics:
- date_from/date_to accept ISO-8601 with Z/offsets and are inclusive.
"""
import math

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..errors import InvariantViolation, NotFoundError, ValidationError
from ..i18n import t
from ..services import inventory_service, products_service
from ..validation import check_text, parse_date_param, parse_positive_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/v1/inventory")


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("validation.invalidJson")
    return payload


def _page_params() -> tuple[int, int]:
    page = parse_positive_int(request.args.get("page"), inventory_service.DEFAULT_PAGE)
    limit = parse_positive_int(request.args.get("limit"), inventory_service.DEFAULT_LIMIT)
    return page, min(limit, current_app.config.get("MAX_PAGE_SIZE", inventory_service.MAX_LIMIT))


def _pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


@inventory_bp.post("/products")
@require_auth
def create_product_route():
    product = products_service.create_product(tenant_id=g.tenant_id, payload=_json_body())
    return {"message": t("inventory.product_created"), "product": product.to_dict()}, 201


@inventory_bp.get("/products")
@require_auth
def list_products_route():
    page, limit = _page_params()
    products, total = products_service.list_products(
        tenant_id=g.tenant_id,
        search=request.args.get("search") or None,
        category=request.args.get("category") or None,
        low_stock_only=request.args.get("low_stock_only") == "true",
        page=page,
        limit=limit,
    )
    return {
        "message": t("inventory.products_listed"),
        "products": [p.to_dict() for p in products],
        "pagination": _pagination(page, limit, total),
    }


@inventory_bp.get("/products/<product_id>")
@require_auth
def get_product_route(product_id: str):
    product = products_service.get_product(tenant_id=g.tenant_id, product_id=product_id)
    return {"message": t("inventory.product_info"), "product": product.to_dict()}


@inventory_bp.put("/products/<product_id>")
@require_auth
def update_product_route(product_id: str):
    product = products_service.update_product(
        tenant_id=g.tenant_id,
        product_id=product_id,
        payload=_json_body(),
    )
    return {"message": t("inventory.product_updated"), "product": product.to_dict()}


@inventory_bp.delete("/products/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    products_service.delete_product(tenant_id=g.tenant_id, product_id=product_id)
    return {"message": t("inventory.product_deleted")}


@inventory_bp.post("/stock-adjustment")
@require_auth
def stock_adjustment_route():
    """
    Apply a signed stock change to one product.

    Body: {product_id, quantity (int, signed), reason, notes?, store_id?}
    reason is free text; it is normalized to SALE / PURCHASE / ADJUSTMENT.
    """
    payload = _json_body()
    product_id = payload.get("product_id")
    quantity = payload.get("quantity")
    reason = payload.get("reason")

    if not product_id or quantity is None or not reason:
        raise ValidationError("validation.required", suffix="product_id, quantity, reason")

    try:
        result = inventory_service.adjust_stock(
            tenant_id=g.tenant_id,
            product_id=product_id,
            quantity_delta=quantity,
            reason=reason,
            notes=payload.get("notes"),
            store_id=check_text(payload.get("store_id"), "store_id", optional=True) or g.store_id,
        )
    except (NotFoundError, InvariantViolation) as e:
        current_app.logger.warning(
            "Stock adjustment rejected tenant=%s product=%s quantity=%s: %s",
            g.tenant_id, product_id, quantity, e,
        )
        raise

    return {"message": t("inventory.stock_adjusted"), **result.to_dict()}


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    products = products_service.list_low_stock(tenant_id=g.tenant_id)
    return {
        "message": t("inventory.low_stock_listed"),
        "low_stock_products": [p.to_dict() for p in products],
    }


@inventory_bp.get("/movements")
@require_auth
def list_movements_route():
    page, limit = _page_params()
    date_from = parse_date_param(request.args.get("date_from"), "date_from")
    date_to = parse_date_param(request.args.get("date_to"), "date_to")

    movements, total = inventory_service.list_movements(
        tenant_id=g.tenant_id,
        product_id=request.args.get("product_id") or None,
        reason=request.args.get("reason") or None,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    return {
        "message": t("inventory.movements_listed"),
        "movements": movements,
        "pagination": _pagination(page, limit, total),
    }
