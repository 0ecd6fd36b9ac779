# backend/waro/__init__.py
from flask import Flask, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import StoreError, WaroError
from .extensions import db, migrate
from .i18n import detect_language, t


def _error_response(error: WaroError):
    message = t(error.message_key)
    if error.suffix:
        message = f"{message}: {error.suffix}"
    body = {"error": message}
    if error.details is not None and (
        error.status_code < 500 or current_app.config.get("EXPOSE_ERROR_DETAILS")
    ):
        body["details"] = error.details
    return jsonify(body), error.status_code


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(WaroError)
    def handle_waro_error(error: WaroError):
        if error.status_code >= 500:
            app.logger.exception("Request failed: %s %s", request.method, request.path)
        return _error_response(error)

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error: SQLAlchemyError):
        db.session.rollback()
        app.logger.exception("Database error: %s %s", request.method, request.path)
        return _error_response(StoreError("database.queryError", details=str(error)))

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": t("routeNotFound")}), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description or t("badRequest")}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s %s", request.method, request.path)
        body = {"error": t("serverError")}
        if app.config.get("EXPOSE_ERROR_DETAILS"):
            body["details"] = str(error)
        return jsonify(body), 500


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.inventory import inventory_bp
    from .routes.sales import sales_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)

    register_error_handlers(app)

    @app.before_request
    def set_language():
        g.language = detect_language()
        app.logger.info("%s %s - Language: %s", request.method, request.path, g.language)

    allowed = {o.strip() for o in app.config.get("CORS_ALLOWED_ORIGINS", "").split(",") if o.strip()}

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and ("*" in allowed or origin in allowed):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, Accept-Language"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
