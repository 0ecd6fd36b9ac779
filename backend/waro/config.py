# backend/waro/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "development", "test" or "production"
    ENV_NAME = os.environ.get("WARO_ENV", "development")

    # SQLite DB stored in backend/instance/waro.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///waro.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Driver diagnostics are returned in error bodies outside production
    EXPOSE_ERROR_DETAILS = _env_flag("EXPOSE_ERROR_DETAILS", ENV_NAME != "production")

    # Message catalog used when the request does not ask for a language
    DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "id")

    # Comma-separated list; "*" allows any origin
    CORS_ALLOWED_ORIGINS = os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    )

    # Absolute lifetime of a bearer session
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Upper bound for page sizes on list endpoints
    MAX_PAGE_SIZE = 500

    # bcrypt cost factor for user passwords
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
