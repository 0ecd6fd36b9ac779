# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two tenants with separate stores and users, then verify
that:
1. A store of tenant B is reported as not found to tenant A
2. Sessions carry the tenant they were issued for and die with it
3. Cross-tenant reads look exactly like reads of missing rows

Test Coverage:
- Tenant helpers: store validation, default store
- Sessions: issue, validate, expire, revoke, deactivation
- Users: tenant-scoped usernames, password checks
- Sales: cross-tenant read blocked
"""

from datetime import timedelta

import pytest

from waro.errors import ConflictError, NotFoundError, ValidationError
from waro.models import SessionToken, Store
from waro.services.auth_service import authenticate, create_user, verify_password
from waro.services.sales_service import create_sale, get_sale
from waro.services.session_service import (
    create_session,
    hash_token,
    revoke_session,
    validate_session,
)
from waro.services.tenant_service import (
    get_default_store,
    get_tenant_stores,
    require_store_in_tenant,
    resolve_store_for_tenant,
)
from waro.time_utils import utcnow


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_store_in_tenant_valid(self, db_session, tenant_a, store_a):
        assert require_store_in_tenant(store_a.id, tenant_a.id).id == store_a.id

    def test_require_store_in_tenant_cross_tenant(self, db_session, tenant_a, store_b):
        with pytest.raises(NotFoundError) as exc:
            require_store_in_tenant(store_b.id, tenant_a.id)
        assert exc.value.message_key == "inventory.store_not_found"

    def test_require_store_in_tenant_nonexistent(self, db_session, tenant_a):
        with pytest.raises(NotFoundError):
            require_store_in_tenant("no-such-store", tenant_a.id)

    def test_get_tenant_stores(self, db_session, tenant_a, tenant_b, store_a, store_b):
        assert [s.id for s in get_tenant_stores(tenant_a.id)] == [store_a.id]
        assert [s.id for s in get_tenant_stores(tenant_b.id)] == [store_b.id]

    def test_default_store_is_earliest(self, db_session, tenant_a, store_a):
        later = Store(
            tenant_id=tenant_a.id,
            name="Cabang Baru",
            code="NEW",
            created_at=utcnow() + timedelta(hours=1),
        )
        db_session.add(later)
        db_session.commit()

        assert get_default_store(tenant_a.id).id == store_a.id
        assert resolve_store_for_tenant(tenant_a.id).id == store_a.id
        assert resolve_store_for_tenant(tenant_a.id, later.id).id == later.id


class TestSessionIsolation:

    def test_session_carries_user_tenant(self, db_session, user_a, tenant_a, store_a):
        record, token = create_session(user_a.id)

        assert record.token_hash == hash_token(token)
        assert record.token_hash != token

        context = validate_session(token)
        assert context is not None
        assert context.tenant_id == tenant_a.id
        assert context.store_id == store_a.id
        assert context.user.id == user_a.id

    def test_unknown_token(self, db_session, user_a):
        assert validate_session("not-a-token") is None

    def test_expired_session(self, db_session, user_a):
        record, token = create_session(user_a.id)
        record.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert validate_session(token) is None

    def test_revoked_session(self, db_session, user_a):
        _, token = create_session(user_a.id)
        assert revoke_session(token) is True
        assert validate_session(token) is None
        assert revoke_session(token) is False

    def test_deactivated_tenant_kills_session(self, db_session, user_a, tenant_a):
        record, token = create_session(user_a.id)
        tenant_a.is_active = False
        db_session.commit()

        assert validate_session(token) is None
        db_session.expire_all()
        assert db_session.get(SessionToken, record.id).revoked_reason == "Tenant deactivated"

    def test_deactivated_user_kills_session(self, db_session, user_a):
        _, token = create_session(user_a.id)
        user_a.is_active = False
        db_session.commit()

        assert validate_session(token) is None

    def test_inactive_user_cannot_get_session(self, db_session, user_a):
        user_a.is_active = False
        db_session.commit()

        with pytest.raises(ValueError):
            create_session(user_a.id)

    def test_token_of_tenant_b_only_sees_tenant_b(self, client, db_session, auth_headers_b, product_a, product_b):
        resp = client.get("/v1/inventory/products", headers=auth_headers_b)
        ids = [p["id"] for p in resp.get_json()["products"]]
        assert ids == [product_b.id]


class TestUsers:

    def test_username_unique_per_tenant_only(self, db_session, tenant_a, tenant_b, store_a, store_b):
        create_user(tenant_a.id, "kasir1", "Password123!", store_id=store_a.id)
        create_user(tenant_b.id, "kasir1", "Password123!", store_id=store_b.id)

        with pytest.raises(ConflictError):
            create_user(tenant_a.id, "kasir1", "Password123!")

    def test_store_must_belong_to_tenant(self, db_session, tenant_a, store_b):
        with pytest.raises(NotFoundError):
            create_user(tenant_a.id, "kasir2", "Password123!", store_id=store_b.id)

    def test_weak_password_and_bad_role(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            create_user(tenant_a.id, "kasir3", "short")
        with pytest.raises(ValidationError):
            create_user(tenant_a.id, "kasir3", "Password123!", role="admin")

    def test_authenticate(self, db_session, tenant_a, tenant_b, user_a):
        assert authenticate(tenant_a.id, "user_a", "Password123!").id == user_a.id
        assert authenticate(tenant_a.id, "user_a", "wrong-password") is None
        # Same credentials, wrong tenant
        assert authenticate(tenant_b.id, "user_a", "Password123!") is None

    def test_verify_password_malformed_hash(self):
        assert verify_password("Password123!", "not-a-bcrypt-hash") is False


class TestSaleIsolation:

    def test_sale_of_other_tenant_not_found(self, db_session, tenant_a, tenant_b, store_a, product_a):
        sale, _, _ = create_sale(
            tenant_id=tenant_a.id,
            store_id=store_a.id,
            items=[{"product_id": product_a.id, "qty": 1, "unit_price_cents": 3500}],
        )

        assert get_sale(sale.id, tenant_id=tenant_a.id).id == sale.id
        with pytest.raises(NotFoundError):
            get_sale(sale.id, tenant_id=tenant_b.id)
