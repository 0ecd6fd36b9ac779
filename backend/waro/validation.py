from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from waro.errors import ValidationError
from waro.time_utils import parse_iso_datetime


# Maximum price: Rp 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] | None = None


def _invalid(suffix: str) -> ValidationError:
    return ValidationError("validation.invalidFormat", suffix=suffix)


def is_strict_int(value: Any) -> bool:
    """True only for real ints. bool is an int subclass and is excluded."""
    return isinstance(value, int) and not isinstance(value, bool)


def check_text(value: Any, field: str, *, optional: bool = False) -> str | None:
    """
    JSON string or (when optional) null.

    Objects, lists and numbers in id/text fields are rejected here so they
    never reach a bound query parameter.
    """
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise _invalid(field)
    return value


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    return {c.key: c for c in model.__mapper__.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers: JSON numbers without a fractional part only.
    # "5" and 5.0 are both rejected.
    if isinstance(coltype, Integer):
        if is_strict_int(value):
            return value
        raise _invalid(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise _invalid(f"{col.key} must be a number")
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise _invalid(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise _invalid(f"{col.key} must be a boolean")

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                dt = None
            if dt is not None:
                return dt
        raise _invalid(f"{col.key} must be an ISO-8601 datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("validation.invalidJson")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError("validation.required", suffix=", ".join(missing))

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields or k not in cols:
            raise _invalid(f"field not allowed: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable and col.default is None:
                raise _invalid(f"{k} cannot be null")
            if col.nullable:
                patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError("validation.required", suffix=k)

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise _invalid(f"{k} exceeds max length {col.type.length}")

        # Optional codes: blank means "none"
        if isinstance(val, str) and val == "" and col.nullable:
            val = None

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    from waro.models.inventory import PRODUCT_TYPES

    price = patch.get("price_cents")
    if price is not None:
        if price < 0:
            raise ValidationError("validation.mustBePositive", suffix="price_cents")
        if price > MAX_PRICE_CENTS:
            raise _invalid(f"price_cents cannot exceed {MAX_PRICE_CENTS}")

    for field in ("cost_cents", "min_stock_threshold", "max_stock_threshold"):
        value = patch.get(field)
        if value is not None and value < 0:
            raise ValidationError("validation.mustBePositive", suffix=field)

    tax_rate = patch.get("tax_rate")
    if tax_rate is not None and tax_rate < 0:
        raise ValidationError("validation.mustBePositive", suffix="tax_rate")

    product_type = patch.get("product_type")
    if product_type is not None:
        product_type = product_type.upper()
        if product_type not in PRODUCT_TYPES:
            raise _invalid(f"product_type must be one of {', '.join(PRODUCT_TYPES)}")
        patch["product_type"] = product_type


def validate_sale_items(items: Any) -> list[dict]:
    """
    Check every sale line and return normalized copies.

    Each line needs product_id, qty (int > 0), unit_price_cents (int >= 0) and
    may carry discount_cents (int >= 0, default 0). The error suffix names the
    line index and the offending fields.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("sales.missingRequiredFields", suffix="sale_items")

    cleaned = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError("sales.invalidSaleItems", suffix=f"item {idx}")

        bad = []
        product_id = item.get("product_id")
        if not product_id or not isinstance(product_id, str):
            bad.append("product_id")

        qty = item.get("qty")
        if not is_strict_int(qty) or qty <= 0:
            bad.append("qty")

        unit_price = item.get("unit_price_cents")
        if not is_strict_int(unit_price) or unit_price < 0:
            bad.append("unit_price_cents")

        discount = item.get("discount_cents", 0)
        if discount is None:
            discount = 0
        if not is_strict_int(discount) or discount < 0:
            bad.append("discount_cents")
        elif "qty" not in bad and "unit_price_cents" not in bad and discount > qty * unit_price:
            # Line total may not go below zero
            bad.append("discount_cents")

        if bad:
            raise ValidationError(
                "sales.invalidSaleItems",
                suffix=f"item {idx}: {', '.join(bad)}",
            )

        cleaned.append({
            "product_id": product_id,
            "qty": qty,
            "unit_price_cents": unit_price,
            "discount_cents": discount,
        })
    return cleaned


def optional_cents(payload: dict, field: str, default: int | None) -> int | None:
    """Optional non-negative integer amount from a request body."""
    value = payload.get(field)
    if value is None:
        return default
    if not is_strict_int(value) or value < 0:
        raise _invalid(f"{field} must be a non-negative integer")
    return value


def parse_positive_int(raw: str | None, default: int) -> int:
    """Query-string integer; anything unparseable or < 1 falls back to default."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parse_date_param(raw: str | None, field: str) -> datetime | None:
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise _invalid(f"{field} must be an ISO-8601 date")
