# backend/sweetshop/config.py
from __future__ import annotations
import os
from datetime import timedelta


DEFAULT_JWT_SECRET = "default-secret"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _jwt_secret_from_env() -> str | None:
    # A blank JWT_SECRET counts as unset
    value = os.environ.get("JWT_SECRET", "").strip()
    return value or None


def _database_uri() -> str:
    # DATABASE_URL wins; DB_PATH is a plain SQLite file path
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    if os.environ.get("DB_PATH"):
        return f"sqlite:///{os.path.abspath(os.environ['DB_PATH'])}"
    return "sqlite:///sweet_shop.sqlite3"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Token signing. Falls back to a well-known secret unless REQUIRE_JWT_SECRET is on.
    JWT_SECRET_KEY = _jwt_secret_from_env() or DEFAULT_JWT_SECRET
    JWT_SECRET_FROM_ENV = _jwt_secret_from_env() is not None
    REQUIRE_JWT_SECRET = (
        _env_flag("REQUIRE_JWT_SECRET")
        or os.environ.get("FLASK_ENV", "").lower() == "production"
    )
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_ALGORITHM = "HS256"

    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES", default=True)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-secret"
    JWT_SECRET_FROM_ENV = True
    REQUIRE_JWT_SECRET = False
    AUTO_CREATE_TABLES = True
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "WARNING"
