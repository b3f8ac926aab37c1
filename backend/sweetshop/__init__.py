# backend/sweetshop/__init__.py
import logging
import os

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import AppError, error_response
from .extensions import db, migrate, jwt


MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


def create_app(config_object=None, **overrides) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))
    _check_jwt_secret(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)
    jwt.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sweets import sweets_bp
    from .routes.purchases import purchases_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sweets_bp)
    app.register_blueprint(purchases_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    return app


def _check_jwt_secret(app: Flask) -> None:
    """Refuse to start with the built-in signing secret when one is required."""
    if not str(app.config.get("JWT_SECRET_KEY") or "").strip():
        # Flask-JWT-Extended would silently sign with SECRET_KEY instead
        raise RuntimeError("JWT_SECRET_KEY is empty: refusing to sign tokens")
    if app.config.get("JWT_SECRET_FROM_ENV"):
        return
    if app.config.get("REQUIRE_JWT_SECRET"):
        raise RuntimeError("JWT_SECRET must be set: refusing to sign tokens with the default secret")
    app.logger.warning("JWT_SECRET is not set; using the built-in default signing secret")


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        body, status = error_response(e)
        return body, status

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return {"error": e.description}, e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        db.session.rollback()
        body, status = error_response(e)
        if status == 500:
            app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return body, status
