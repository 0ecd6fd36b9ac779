# Overview: Flask CLI command groups for bootstrap, accounts, and stock maintenance.

# backend/waro/cli.py
# Commands Legend (run from the backend directory, FLASK_APP=wsgi.py):
#
# System bootstrap/repair:
# - flask system init [--tenant "Warung Name"] [--tenant-code WARUNG]
#   Idempotent: creates the default tenant, its main store and an owner user.
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenants:
# - flask tenants list
# - flask tenants create --name "Toko Maju" --code MAJU
# - flask tenants add-store --tenant-id <uuid> --name "Cabang 2" --code C2
#
# Users:
# - flask users create --tenant-id <uuid> --username kasir1 --password ... --role cashier
# - flask users issue-token --tenant-id <uuid> --username kasir1 --password ...
#   Prints a bearer token for API calls.
#
# Inventory:
# - flask inventory reconcile [--tenant-id <uuid>]
#   Reports products whose stock_quantity disagrees with their movement ledger.

import click
from flask.cli import with_appcontext

from .errors import WaroError
from .extensions import db
from .models import Store, Tenant, User
from .services import auth_service, inventory_service, session_service
from .services.tenant_service import get_default_store


DEFAULT_OWNER_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--tenant', 'tenant_name', default='Default Tenant', help='Tenant name')
@click.option('--tenant-code', default='DEFAULT', help='Tenant code')
@with_appcontext
def init_system(tenant_name, tenant_code):
    """
    Create the default tenant, its main store and an owner account.

    SECURITY: the owner password defaults to "Password123!". Change it.
    """
    db.create_all()

    tenant = db.session.query(Tenant).filter_by(code=tenant_code).first()
    if not tenant:
        tenant = Tenant(name=tenant_name, code=tenant_code, is_active=True)
        db.session.add(tenant)
        db.session.commit()
        click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id})")
    else:
        click.echo(f"PASS Using existing tenant: {tenant.name} (ID: {tenant.id})")

    store = get_default_store(tenant.id)
    if not store:
        store = Store(tenant_id=tenant.id, name="Main Store", code="MAIN")
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created store: {store.name} (ID: {store.id})")

    owner = db.session.query(User).filter_by(tenant_id=tenant.id, username="owner").first()
    if not owner:
        auth_service.create_user(
            tenant.id,
            "owner",
            DEFAULT_OWNER_PASSWORD,
            email="owner@waro.local",
            role="owner",
            store_id=store.id,
        )
        click.echo(f"PASS Created user: owner / {DEFAULT_OWNER_PASSWORD}")

    click.echo("DONE System initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'flask system init' to initialize.")


@click.group('tenants')
def tenants_group():
    """Tenant and store management."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    tenants = db.session.query(Tenant).order_by(Tenant.created_at.asc()).all()
    if not tenants:
        click.echo("No tenants.")
        return
    for tenant in tenants:
        state = "active" if tenant.is_active else "inactive"
        click.echo(f"{tenant.id}  {tenant.code or '-':<12} {tenant.name} ({state})")


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_tenant_cli(name, code):
    if db.session.query(Tenant).filter_by(code=code).first():
        raise click.ClickException(f"Tenant code already exists: {code}")
    tenant = Tenant(name=name, code=code, is_active=True)
    db.session.add(tenant)
    db.session.commit()
    click.echo(f"PASS Created tenant {tenant.name} (ID: {tenant.id})")


@tenants_group.command('add-store')
@click.option('--tenant-id', required=True, help='Tenant ID')
@click.option('--name', required=True, help='Store name')
@click.option('--code', help='Store code (unique within tenant)')
@click.option('--address', help='Street address')
@with_appcontext
def add_store_cli(tenant_id, name, code, address):
    if not db.session.query(Tenant).filter_by(id=tenant_id).first():
        raise click.ClickException(f"Tenant not found: {tenant_id}")
    store = Store(tenant_id=tenant_id, name=name, code=code, address=address)
    db.session.add(store)
    db.session.commit()
    click.echo(f"PASS Created store {store.name} (ID: {store.id})")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--tenant-id', required=True, help='Tenant ID')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['owner', 'manager', 'cashier']), default='cashier', show_default=True)
@click.option('--store-id', default=None, help='Home store (defaults to the tenant default store)')
@with_appcontext
def create_user_cli(tenant_id, username, email, password, role, store_id):
    if store_id is None:
        store = get_default_store(tenant_id)
        store_id = store.id if store else None
    try:
        user = auth_service.create_user(
            tenant_id,
            username,
            password,
            email=email,
            role=role,
            store_id=store_id,
        )
    except WaroError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} ({user.role}) ID: {user.id}")


@users_group.command('issue-token')
@click.option('--tenant-id', required=True, help='Tenant ID')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, help='Password')
@with_appcontext
def issue_token_cli(tenant_id, username, password):
    """Verify credentials and print a bearer token."""
    user = auth_service.authenticate(tenant_id, username, password)
    if not user:
        raise click.ClickException("Invalid credentials")
    session, token = session_service.create_session(user.id)
    click.echo(f"Token (expires {session.expires_at.isoformat()}Z):")
    click.echo(token)


@click.group('inventory')
def inventory_group():
    """Stock ledger maintenance."""


@inventory_group.command('reconcile')
@click.option('--tenant-id', default=None, help='Limit to one tenant')
@with_appcontext
def reconcile_cli(tenant_id):
    """Compare cached stock with the movement ledger; exit 1 on drift."""
    drift = inventory_service.reconcile_stock(tenant_id)
    if not drift:
        click.echo("PASS Stock matches ledger for all products.")
        return
    for row in drift:
        click.echo(
            f"FAIL {row['product_id']} {row['name']}: "
            f"stock={row['stock_quantity']} ledger={row['ledger_quantity']}"
        )
    raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
