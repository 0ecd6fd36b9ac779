# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .i18n import t
from .services import session_service


def require_auth(f):
    """
    Require a bearer session and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.tenant_id: Tenant of the session - REQUIRED, never taken from the body
    - g.store_id: The user's home store (may be None)
    - g.session_context: The full SessionContext object

    Returns 401 when the header is missing/malformed or the token is not live.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": t("auth.required")}), 401

        token = auth_header.split(" ", 1)[1].strip()
        context = session_service.validate_session(token) if token else None
        if not context:
            return jsonify({"error": t("auth.invalid_credentials")}), 401

        g.current_user = context.user
        g.tenant_id = context.tenant_id
        g.store_id = context.store_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
