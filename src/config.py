"""Centralized application configuration for the admin dashboard."""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Final, Optional

from dotenv import load_dotenv

BASE_DIR: Final[Path] = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

# Load environment variables once, prioritizing runtime env over file values
load_dotenv(dotenv_path=ENV_PATH, override=False)


def _str_to_bool(value: str | bool | None, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value


def _determine_database_url() -> str:
    """
    Return a connection string for the local SQL store using the following precedence:
    1. Explicit DATABASE_URL
    2. Individual DB_* components (for PostgreSQL)
    3. Local SQLite fallback (for onboarding / tests)
    """
    explicit_url = os.getenv("DATABASE_URL")
    if explicit_url:
        return explicit_url

    username = os.getenv("DB_USERNAME")
    password = os.getenv("DB_PASSWORD")
    host = os.getenv("DB_HOST")
    port = os.getenv("DB_PORT")
    name = os.getenv("DB_NAME")

    if all([username, password, host, port, name]):
        driver = os.getenv("DB_DRIVER", "postgresql+psycopg2")
        return f"{driver}://{username}:{password}@{host}:{port}/{name}"

    fallback_path = BASE_DIR / "db" / "store.db"
    fallback_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{fallback_path.as_posix()}"


class Config:
    """Default runtime configuration shared across Flask, services, and scripts."""

    APP_NAME: Final[str] = os.getenv("APP_NAME", "Furniro Admin")
    APP_ENV: Final[str] = os.getenv("APP_ENV", "development")

    SECRET_KEY: Final[str] = os.getenv("SECRET_KEY", "change-me-in-prod")
    DEBUG: Final[bool] = _str_to_bool(os.getenv("FLASK_DEBUG"), default=APP_ENV == "development")
    TESTING: Final[bool] = _str_to_bool(os.getenv("FLASK_TESTING"), default=False)

    # Flask run configuration (used by run.py)
    FLASK_RUN_HOST: Final[str] = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    FLASK_RUN_PORT: Final[int] = int(os.getenv("FLASK_RUN_PORT", "5000"))

    # Single admin credential pair; no user store
    ADMIN_EMAIL: Final[Optional[str]] = _optional("ADMIN_EMAIL")
    ADMIN_PASSWORD: Final[Optional[str]] = _optional("ADMIN_PASSWORD")
    SESSION_LIFETIME_HOURS: Final[int] = int(os.getenv("SESSION_LIFETIME_HOURS", "24"))
    SESSION_COOKIE_SECURE: Final[bool] = _str_to_bool(
        os.getenv("SESSION_COOKIE_SECURE"), default=APP_ENV == "production"
    )

    # Record store: "sanity" (hosted content API) or "sql" (local database)
    STORE_BACKEND: Final[str] = os.getenv("STORE_BACKEND", "sanity").strip().lower()
    SANITY_PROJECT_ID: Final[Optional[str]] = _optional("SANITY_PROJECT_ID")
    SANITY_DATASET: Final[str] = os.getenv("SANITY_DATASET", "production")
    SANITY_API_VERSION: Final[str] = os.getenv("SANITY_API_VERSION", "2025-01-13")
    SANITY_API_TOKEN: Final[Optional[str]] = _optional("SANITY_API_TOKEN")
    SANITY_USE_CDN: Final[bool] = _str_to_bool(os.getenv("SANITY_USE_CDN"), default=False)
    SANITY_TIMEOUT_SECONDS: Final[float] = float(os.getenv("SANITY_TIMEOUT_SECONDS", "10"))

    # Database (sql backend)
    DATABASE_URL: Final[str] = _determine_database_url()
    SQL_ECHO: Final[bool] = _str_to_bool(os.getenv("SQL_ECHO"), default=False)
    DB_POOL_SIZE: Final[int] = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: Final[int] = int(os.getenv("DB_MAX_OVERFLOW", "20"))

    # Listing pages
    ORDERS_PAGE_SIZE: Final[int] = int(os.getenv("ORDERS_PAGE_SIZE", "10"))
    PRODUCTS_PAGE_SIZE: Final[int] = int(os.getenv("PRODUCTS_PAGE_SIZE", "8"))
    ANALYTICS_TOP_N: Final[int] = int(os.getenv("ANALYTICS_TOP_N", "5"))

    # Observability
    STRUCTURED_LOGS_ENABLED: Final[bool] = _str_to_bool(os.getenv("STRUCTURED_LOGS_ENABLED"), default=True)
    LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")
    REQUEST_ID_HEADER: Final[str] = os.getenv("REQUEST_ID_HEADER", "X-Request-ID")
    DEFAULT_TIMEZONE: Final[str] = os.getenv("DEFAULT_TIMEZONE", "UTC")

    @classmethod
    def configure_app(cls, app: Any) -> None:
        """Apply core configuration to a Flask app instance."""
        app.config["SECRET_KEY"] = cls.SECRET_KEY
        app.config["ENV"] = cls.APP_ENV
        app.config["DEBUG"] = cls.DEBUG
        app.config["TESTING"] = cls.TESTING
        app.config["APP_NAME"] = cls.APP_NAME
        app.config["ADMIN_EMAIL"] = cls.ADMIN_EMAIL
        app.config["ADMIN_PASSWORD"] = cls.ADMIN_PASSWORD
        app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=cls.SESSION_LIFETIME_HOURS)
        app.config["SESSION_COOKIE_HTTPONLY"] = True
        app.config["SESSION_COOKIE_SECURE"] = cls.SESSION_COOKIE_SECURE
        app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
        app.config["STORE_BACKEND"] = cls.STORE_BACKEND
        app.config["SANITY_PROJECT_ID"] = cls.SANITY_PROJECT_ID
        app.config["SANITY_DATASET"] = cls.SANITY_DATASET
        app.config["SANITY_API_VERSION"] = cls.SANITY_API_VERSION
        app.config["SANITY_API_TOKEN"] = cls.SANITY_API_TOKEN
        app.config["SANITY_USE_CDN"] = cls.SANITY_USE_CDN
        app.config["SANITY_TIMEOUT_SECONDS"] = cls.SANITY_TIMEOUT_SECONDS
        app.config["SQLALCHEMY_DATABASE_URI"] = cls.DATABASE_URL
        app.config["ORDERS_PAGE_SIZE"] = cls.ORDERS_PAGE_SIZE
        app.config["PRODUCTS_PAGE_SIZE"] = cls.PRODUCTS_PAGE_SIZE
        app.config["ANALYTICS_TOP_N"] = cls.ANALYTICS_TOP_N
        app.config["DEFAULT_TIMEZONE"] = cls.DEFAULT_TIMEZONE
        app.config["STRUCTURED_LOGS_ENABLED"] = cls.STRUCTURED_LOGS_ENABLED
        app.config["LOG_LEVEL"] = cls.LOG_LEVEL
        app.config["REQUEST_ID_HEADER"] = cls.REQUEST_ID_HEADER
