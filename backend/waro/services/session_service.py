# Overview: Bearer session issuance and validation with tenant context.

"""
Session Token Management

WHY: The HTTP layer needs one place that turns an opaque bearer token into a
user plus tenant context. Tokens are random, only their hash is stored, and
they expire.

MULTI-TENANT: Sessions capture tenant_id and store_id at creation time. That
context is immutable for the session lifetime, so routes never re-derive the
tenant from client input.

SECURITY FEATURES:
- 32 bytes from secrets.token_hex
- SHA-256 hash stored, plaintext returned once
- Absolute lifetime from Config.SESSION_TTL_HOURS
- Revocable
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Tenant, User
from waro.time_utils import utcnow


@dataclass
class SessionContext:
    """Result of validate_session: who is calling and for which tenant."""
    user: User
    session: SessionToken
    tenant_id: str
    store_id: str | None


def generate_token() -> str:
    """64 hex chars. Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 of the token.

    WHY SHA-256 not bcrypt: tokens are already high-entropy.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


def create_session(user_id: str) -> tuple[SessionToken, str]:
    """
    Create a session for the user and return (record, plaintext_token).

    Raises ValueError if the user is unknown, inactive, or its tenant is
    inactive.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user or not user.is_active:
        raise ValueError("User not found or inactive")

    tenant = db.session.query(Tenant).filter_by(id=user.tenant_id).first()
    if not tenant or not tenant.is_active:
        raise ValueError("Tenant is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        tenant_id=user.tenant_id,
        store_id=user.store_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _session_ttl(),
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, else None.

    None when the token is unknown, expired or revoked, or when the user or
    tenant has been deactivated since the session was issued.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return None

    if session.expires_at < now:
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    tenant = session.tenant
    if not tenant or not tenant.is_active:
        _revoke(session, "Tenant deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        tenant_id=session.tenant_id,
        store_id=session.store_id,
    )


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()
    if not session:
        return False
    _revoke(session, reason)
    return True
