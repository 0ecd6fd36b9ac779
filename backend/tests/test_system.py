# Overview: Health endpoint, CORS headers and CLI commands.

from waro.models import Product, Store, Tenant, User


class TestHealth:

    def test_health_ok(self, client, db_session):
        resp = client.get("/v1/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["database"] == "connected"
        assert data["status"] == "Berhasil"
        assert data["message"] == "Sistem berfungsi dengan baik"
        assert data["timestamp"].endswith("Z")
        assert data["uptime"] >= 0

    def test_health_english(self, client, db_session):
        resp = client.get("/v1/health?lang=en")
        assert resp.get_json()["message"] == "System is healthy"


class TestCors:

    def test_allowed_origin_echoed(self, client, db_session):
        resp = client.get("/v1/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin_ignored(self, client, db_session):
        resp = client.get("/v1/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init", "--tenant", "Warung Uji", "--tenant-code", "UJI"])
        assert result.exit_code == 0, result.output
        assert "DONE" in result.output

        result = runner.invoke(args=["system", "init", "--tenant", "Warung Uji", "--tenant-code", "UJI"])
        assert result.exit_code == 0, result.output
        assert "Using existing tenant" in result.output

        tenant = db_session.query(Tenant).filter_by(code="UJI").one()
        assert db_session.query(Store).filter_by(tenant_id=tenant.id).count() == 1
        assert db_session.query(User).filter_by(tenant_id=tenant.id, role="owner").count() == 1

    def test_tenants_and_tokens(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["tenants", "create", "--name", "Toko Baru", "--code", "BARU"])
        assert result.exit_code == 0, result.output
        tenant = db_session.query(Tenant).filter_by(code="BARU").one()

        result = runner.invoke(args=["tenants", "create", "--name", "Again", "--code", "BARU"])
        assert result.exit_code != 0

        result = runner.invoke(args=["tenants", "add-store", "--tenant-id", tenant.id, "--name", "Pusat", "--code", "P1"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(args=["tenants", "list"])
        assert "BARU" in result.output

        result = runner.invoke(args=[
            "users", "create",
            "--tenant-id", tenant.id,
            "--username", "kasir1",
            "--password", "Password123!",
            "--role", "cashier",
        ])
        assert result.exit_code == 0, result.output

        result = runner.invoke(args=[
            "users", "issue-token",
            "--tenant-id", tenant.id,
            "--username", "kasir1",
            "--password", "Password123!",
        ])
        assert result.exit_code == 0, result.output
        token = result.output.strip().splitlines()[-1]
        assert len(token) == 64

        result = runner.invoke(args=[
            "users", "issue-token",
            "--tenant-id", tenant.id,
            "--username", "kasir1",
            "--password", "wrong-password",
        ])
        assert result.exit_code != 0

    def test_reconcile(self, app, db_session, tenant_a, store_a, product_a):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["inventory", "reconcile"])
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output

        db_session.query(Product).filter_by(id=product_a.id).update({"stock_quantity": 1})
        db_session.commit()

        result = runner.invoke(args=["inventory", "reconcile", "--tenant-id", tenant_a.id])
        assert result.exit_code == 1
        assert "stock=1 ledger=100" in result.output
