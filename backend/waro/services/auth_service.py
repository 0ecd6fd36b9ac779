# Overview: User accounts and password verification (bcrypt).

"""
Authentication Service

WHY: Every sale and stock movement is attributable to a user. Accounts are
created from the CLI; HTTP login/registration flows live outside this backend.

MULTI-TENANT: Users belong to exactly one tenant. Username uniqueness is
tenant-scoped.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from Config.BCRYPT_ROUNDS, default 12)
- Minimum 8 characters
"""

from __future__ import annotations

import bcrypt
from flask import current_app

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import User
from ..models.auth import USER_ROLES
from waro.time_utils import utcnow
from .tenant_service import get_active_tenant, require_store_in_tenant


MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            "validation.invalidFormat",
            suffix=f"password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check. A malformed stored hash never matches."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_user(
    tenant_id: str,
    username: str,
    password: str,
    *,
    email: str | None = None,
    role: str = "cashier",
    store_id: str | None = None,
) -> User:
    """
    Create a user inside a tenant.

    Raises:
        NotFoundError: tenant inactive/missing or store not in tenant
        ValidationError: bad role or weak password
        ConflictError: username already taken in this tenant
    """
    if get_active_tenant(tenant_id) is None:
        raise NotFoundError("notFound", details={"tenant_id": tenant_id})

    if role not in USER_ROLES:
        raise ValidationError("validation.invalidFormat", suffix=f"role must be one of {', '.join(USER_ROLES)}")

    if store_id is not None:
        require_store_in_tenant(store_id, tenant_id)

    existing = db.session.query(User).filter_by(tenant_id=tenant_id, username=username).first()
    if existing:
        raise ConflictError("validation.invalidFormat", suffix="username already exists in this tenant")

    user = User(
        tenant_id=tenant_id,
        store_id=store_id,
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(tenant_id: str, username: str, password: str) -> User | None:
    """
    Return the user when the credentials match, else None.

    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.tenant_id == tenant_id,
        User.username == username,
        User.is_active.is_(True),
    ).first()
    if not user or get_active_tenant(tenant_id) is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
