# Overview: Thread-based concurrency coverage for stock adjustments.

"""
Concurrency Tests

Runs against a file-backed SQLite database so that each worker thread gets
its own connection. Two debits that each fit the stock on their own but not
together must not both succeed.
"""

import os
import tempfile
import threading

import pytest

from waro import create_app
from waro.errors import InvariantViolation
from waro.extensions import db
from waro.models import InventoryMovement, Product, Store, Tenant
from waro.services import inventory_service, sales_service


@pytest.fixture()
def file_app():
    tmpdir = tempfile.TemporaryDirectory()
    db_path = os.path.join(tmpdir.name, "concurrency.db")
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
    })

    with app.app_context():
        db.drop_all()
        db.create_all()

        tenant = Tenant(name="Concurrency Tenant", code="CONC")
        db.session.add(tenant)
        db.session.commit()

        store = Store(tenant_id=tenant.id, name="Concurrency Store")
        db.session.add(store)
        db.session.commit()

        product = Product(tenant_id=tenant.id, sku="CONC-1", name="Concurrent Product", price_cents=1000)
        db.session.add(product)
        db.session.commit()

        inventory_service.adjust_stock(
            tenant_id=tenant.id,
            product_id=product.id,
            quantity_delta=100,
            reason="PURCHASE",
        )
        app.config["TEST_IDS"] = {
            "tenant_id": tenant.id,
            "store_id": store.id,
            "product_id": product.id,
        }
        db.session.remove()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()
    tmpdir.cleanup()


def _run_workers(app, target, count):
    results = []
    errors = []
    lock = threading.Lock()
    barrier = threading.Barrier(count)

    def worker():
        with app.app_context():
            try:
                barrier.wait()
                outcome = target()
                with lock:
                    results.append(outcome)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


def test_concurrent_debits_cannot_oversell(file_app):
    ids = file_app.config["TEST_IDS"]

    def debit():
        return inventory_service.adjust_stock(
            tenant_id=ids["tenant_id"],
            product_id=ids["product_id"],
            quantity_delta=-60,
            reason="SALE",
        ).new_stock_quantity

    results, errors = _run_workers(file_app, debit, 2)

    assert results == [40]
    assert len(errors) == 1
    assert isinstance(errors[0], InvariantViolation)

    with file_app.app_context():
        assert db.session.get(Product, ids["product_id"]).stock_quantity == 40
        assert db.session.query(InventoryMovement).filter_by(reason="SALE").count() == 1
        assert inventory_service.reconcile_stock(ids["tenant_id"]) == []


def test_concurrent_small_adjustments_all_land(file_app):
    ids = file_app.config["TEST_IDS"]

    def credit():
        return inventory_service.adjust_stock(
            tenant_id=ids["tenant_id"],
            product_id=ids["product_id"],
            quantity_delta=1,
            reason="RESTOCK",
        ).new_stock_quantity

    results, errors = _run_workers(file_app, credit, 8)

    assert errors == []
    assert sorted(results) == list(range(101, 109))

    with file_app.app_context():
        assert db.session.get(Product, ids["product_id"]).stock_quantity == 108
        assert inventory_service.get_ledger_quantity(ids["tenant_id"], ids["product_id"]) == 108


def test_concurrent_sales_share_stock(file_app):
    ids = file_app.config["TEST_IDS"]

    def sell():
        sale, _, _ = sales_service.create_sale(
            tenant_id=ids["tenant_id"],
            store_id=ids["store_id"],
            items=[{"product_id": ids["product_id"], "qty": 30, "unit_price_cents": 1000}],
        )
        return sale.id

    results, errors = _run_workers(file_app, sell, 4)

    # 100 units, 30 per sale: three fit, the fourth must fail as a whole
    assert len(results) == 3
    assert len(errors) == 1
    assert isinstance(errors[0], InvariantViolation)

    with file_app.app_context():
        assert db.session.get(Product, ids["product_id"]).stock_quantity == 10
        assert inventory_service.reconcile_stock(ids["tenant_id"]) == []
