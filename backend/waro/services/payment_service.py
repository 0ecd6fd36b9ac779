# Overview: Pending payment records for non-cash sales.

"""
Payment Records

WHY: A QRIS / e-wallet / card / transfer sale is only settled when the
provider confirms it. The sale creates one PENDING Payment for its total;
provider callbacks (outside this backend) move it on.

CASH never creates a Payment row: it is settled at the register.
"""

from __future__ import annotations

from ..extensions import db
from ..errors import ValidationError
from ..models import Payment


# Column width of Sale.payment_method / Payment.method
MAX_METHOD_LENGTH = 16


def normalize_payment_method(method: str | None) -> str | None:
    """
    Upper-cased method, or None when absent.

    Any method name is accepted; only CASH skips the Payment row.
    """
    if method is None or (isinstance(method, str) and not method.strip()):
        return None
    if not isinstance(method, str):
        raise ValidationError("validation.invalidFormat", suffix="payment_method")
    upper = method.strip().upper()
    if len(upper) > MAX_METHOD_LENGTH:
        raise ValidationError(
            "validation.invalidFormat",
            suffix=f"payment_method exceeds max length {MAX_METHOD_LENGTH}",
        )
    return upper


def requires_payment_record(method: str | None) -> bool:
    return method is not None and method != "CASH"


def create_pending_payment(
    *,
    tenant_id: str,
    sale_id: str,
    method: str,
    amount_cents: int,
    provider: str | None = None,
) -> Payment:
    """Insert a PENDING payment. Caller owns the transaction."""
    payment = Payment(
        tenant_id=tenant_id,
        sale_id=sale_id,
        method=method,
        provider=provider,
        amount_cents=amount_cents,
        status="PENDING",
    )
    db.session.add(payment)
    db.session.flush()
    return payment


def get_payment_for_sale(sale_id: str) -> Payment | None:
    return db.session.query(Payment).filter_by(sale_id=sale_id).first()
