"""
Multi-Tenant Service: Tenant Validation and Store Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every write is scoped to a tenant, and store IDs from client input must be
checked against that tenant before they are used.

SECURITY INVARIANTS:
1. Every authenticated request has g.tenant_id set (see decorators.require_auth)
2. Store IDs from client input are validated against the tenant
3. A store of another tenant is reported exactly like a missing one
"""

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError
from ..models import Store, Tenant


def get_active_tenant(tenant_id: str) -> Tenant | None:
    tenant = db.session.query(Tenant).filter_by(id=tenant_id).first()
    if tenant is None or not tenant.is_active:
        return None
    return tenant


def require_store_in_tenant(store_id: str, tenant_id: str) -> Store:
    """
    Validate that a store belongs to the specified tenant.

    Raises NotFoundError if the store doesn't exist or belongs to a different
    tenant (don't reveal that it exists elsewhere).
    """
    store = db.session.query(Store).filter_by(id=store_id, tenant_id=tenant_id).first()
    if store is None:
        raise NotFoundError("inventory.store_not_found", details={"store_id": store_id})
    return store


def get_default_store(tenant_id: str) -> Store | None:
    """Earliest-created store of the tenant."""
    return (
        db.session.query(Store)
        .filter_by(tenant_id=tenant_id)
        .order_by(Store.created_at.asc(), Store.id.asc())
        .first()
    )


def resolve_store_for_tenant(tenant_id: str, store_id: str | None = None) -> Store:
    """Explicit store (validated) or the tenant's default store."""
    if store_id:
        return require_store_in_tenant(store_id, tenant_id)
    store = get_default_store(tenant_id)
    if store is None:
        raise NotFoundError("inventory.store_not_found", details={"tenant_id": tenant_id})
    return store


def get_tenant_stores(tenant_id: str) -> list[Store]:
    return (
        db.session.query(Store)
        .filter_by(tenant_id=tenant_id)
        .order_by(Store.created_at.asc())
        .all()
    )
