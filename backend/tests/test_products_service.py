# Overview: Product catalog service tests.

import pytest

from waro.errors import ConflictError, NotFoundError, ValidationError
from waro.services import products_service
from waro.services.products_service import infer_product_type


@pytest.mark.parametrize("category, expected", [
    ("Raw Material", "RAW_MATERIAL"),
    ("bahan INGREDIENT", "RAW_MATERIAL"),
    ("component", "COMPONENT"),
    ("Laundry Service", "SERVICE"),
    ("Minuman", "FINISHED_GOOD"),
    (None, "FINISHED_GOOD"),
])
def test_infer_product_type(category, expected):
    assert infer_product_type(category) == expected


class TestCreateProduct:

    def test_explicit_type_kept(self, db_session, tenant_a):
        product = products_service.create_product(
            tenant_id=tenant_a.id,
            payload={"name": "Kemasan", "price_cents": 100, "category": "raw", "product_type": "component"},
        )
        assert product.product_type == "COMPONENT"
        assert product.stock_quantity == 0

    def test_unknown_type_rejected(self, db_session, tenant_a):
        with pytest.raises(ValidationError):
            products_service.create_product(
                tenant_id=tenant_a.id,
                payload={"name": "X", "price_cents": 100, "product_type": "GADGET"},
            )

    @pytest.mark.parametrize("payload", [
        {"name": "X", "price_cents": -1},
        {"name": "X", "price_cents": 10.5},
        {"name": "X", "price_cents": 1_000_000_000},
        {"name": "X", "price_cents": 100, "cost_cents": -5},
        {"name": "X", "price_cents": 100, "unknown_field": 1},
    ])
    def test_bad_payloads(self, db_session, tenant_a, payload):
        with pytest.raises(ValidationError):
            products_service.create_product(tenant_id=tenant_a.id, payload=payload)

    def test_barcode_conflict(self, db_session, tenant_a):
        products_service.create_product(
            tenant_id=tenant_a.id,
            payload={"name": "A", "price_cents": 100, "barcode": "8991234567890"},
        )
        with pytest.raises(ConflictError) as exc:
            products_service.create_product(
                tenant_id=tenant_a.id,
                payload={"name": "B", "price_cents": 100, "barcode": "8991234567890"},
            )
        assert exc.value.message_key == "inventory.barcode_exists"

    def test_deleted_product_releases_sku(self, db_session, tenant_a):
        first = products_service.create_product(
            tenant_id=tenant_a.id,
            payload={"name": "Lama", "sku": "SKU-1", "price_cents": 100},
        )
        products_service.delete_product(tenant_id=tenant_a.id, product_id=first.id)

        second = products_service.create_product(
            tenant_id=tenant_a.id,
            payload={"name": "Baru", "sku": "SKU-1", "price_cents": 100},
        )
        assert second.id != first.id


class TestUpdateProduct:

    def test_update_cannot_take_existing_sku(self, db_session, tenant_a, store_a, product_factory):
        product_factory(tenant_a, name="Satu", sku="S-1")
        other = product_factory(tenant_a, name="Dua", sku="S-2")

        with pytest.raises(ConflictError):
            products_service.update_product(
                tenant_id=tenant_a.id,
                product_id=other.id,
                payload={"sku": "S-1"},
            )

    def test_update_keeps_own_sku(self, db_session, tenant_a, store_a, product_factory):
        product = product_factory(tenant_a, name="Satu", sku="S-1")
        updated = products_service.update_product(
            tenant_id=tenant_a.id,
            product_id=product.id,
            payload={"sku": "S-1", "name": "Satu Baru"},
        )
        assert updated.name == "Satu Baru"

    def test_stock_not_writable(self, db_session, tenant_a, product_a):
        with pytest.raises(ValidationError):
            products_service.update_product(
                tenant_id=tenant_a.id,
                product_id=product_a.id,
                payload={"stock_quantity": 5},
            )

    def test_other_tenant(self, db_session, tenant_a, product_b):
        with pytest.raises(NotFoundError):
            products_service.update_product(
                tenant_id=tenant_a.id,
                product_id=product_b.id,
                payload={"name": "Hijack"},
            )


class TestListProducts:

    def test_category_and_low_stock_filters(self, db_session, tenant_a, store_a, product_factory):
        product_factory(tenant_a, name="Kopi", sku="K", category="MINUMAN", stock=1, min_stock_threshold=5)
        product_factory(tenant_a, name="Teh", sku="T", category="MINUMAN", stock=10, min_stock_threshold=5)
        product_factory(tenant_a, name="Roti", sku="R", category="MAKANAN", stock=0, min_stock_threshold=5)

        products, total = products_service.list_products(tenant_id=tenant_a.id, category="minuman")
        assert total == 2
        assert [p.name for p in products] == ["Kopi", "Teh"]

        products, total = products_service.list_products(tenant_id=tenant_a.id, low_stock_only=True)
        assert [p.name for p in products] == ["Kopi", "Roti"]

    def test_deleted_hidden(self, db_session, tenant_a, product_a):
        products_service.delete_product(tenant_id=tenant_a.id, product_id=product_a.id)
        products, total = products_service.list_products(tenant_id=tenant_a.id)
        assert total == 0 and products == []
