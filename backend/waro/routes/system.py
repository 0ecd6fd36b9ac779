# backend/waro/routes/system.py
"""
System health endpoint. No authentication.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..i18n import t
from waro.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/v1")

_STARTED_AT = time.time()


def check_database_health() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except Exception:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return False


@system_bp.get("/health")
def health():
    database_ok = check_database_health()
    body = {
        "timestamp": to_utc_z(utcnow()),
        "environment": current_app.config.get("ENV_NAME", "development"),
        "database": "connected" if database_ok else "disconnected",
    }
    if database_ok:
        body.update({
            "status": t("success"),
            "uptime": round(time.time() - _STARTED_AT, 3),
            "message": t("health.ok"),
        })
        return body, 200

    body.update({
        "status": t("error"),
        "error": t("database.connectionError"),
        "message": t("health.degraded"),
    })
    return body, 503
