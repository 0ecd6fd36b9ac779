"""
Pytest fixtures for WarO backend tests.

Provides test database setup, two-tenant fixtures, and test client.
"""

import pytest

from waro import create_app
from waro.extensions import db
from waro.models import Product, Store, Tenant, User
from waro.services import inventory_service
from waro.services.auth_service import hash_password
from waro.services.session_service import create_session


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'DEFAULT_LANGUAGE': 'id',
        'EXPOSE_ERROR_DETAILS': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Tenant A (first tenant)."""
    tenant = Tenant(name="Toko Maju", code="MAJU", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Tenant B (second tenant)."""
    tenant = Tenant(name="Warung Sejahtera", code="SEJAHTERA", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def store_a(db_session, tenant_a):
    store = Store(tenant_id=tenant_a.id, name="Store A1", code="A1")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session, tenant_b):
    store = Store(tenant_id=tenant_b.id, name="Store B1", code="B1")
    db_session.add(store)
    db_session.commit()
    return store


def _make_user(db_session, tenant, store, username):
    user = User(
        tenant_id=tenant.id,
        store_id=store.id,
        username=username,
        email=f"{username}@waro.test",
        password_hash=hash_password("Password123!"),
        role="owner",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a, store_a):
    return _make_user(db_session, tenant_a, store_a, "user_a")


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b, store_b):
    return _make_user(db_session, tenant_b, store_b, "user_b")


@pytest.fixture(scope='function')
def auth_headers_a(user_a):
    _, token = create_session(user_a.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def auth_headers_b(user_b):
    _, token = create_session(user_b.id)
    return {"Authorization": f"Bearer {token}"}


def make_product(db_session, tenant, *, name="Indomie Goreng", sku=None, stock=0, price_cents=3500, **extra):
    """Insert a product and bring it to `stock` through the ledger."""
    product = Product(tenant_id=tenant.id, name=name, sku=sku, price_cents=price_cents, **extra)
    db_session.add(product)
    db_session.commit()
    if stock:
        inventory_service.adjust_stock(
            tenant_id=tenant.id,
            product_id=product.id,
            quantity_delta=stock,
            reason="PURCHASE",
            notes="Opening stock",
        )
    return product


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a, store_a):
    """Product in tenant A with 100 units on hand."""
    return make_product(db_session, tenant_a, name="Indomie Goreng", sku="IDM-001", stock=100)


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b, store_b):
    """Product in tenant B with 100 units on hand."""
    return make_product(db_session, tenant_b, name="Teh Botol", sku="TB-001", stock=100)


@pytest.fixture(scope='function')
def product_factory(db_session):
    """make_product bound to the test session."""
    def factory(tenant, **kwargs):
        return make_product(db_session, tenant, **kwargs)
    return factory
