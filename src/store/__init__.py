"""Record store access for views and services."""

from flask import current_app

from src.database import get_db
from .base import ProductNotFound, StoreError, StoreRepository
from .sanity import SanityStore
from .sql import SqlStore

STORE_EXTENSION_KEY = "record_store"


def get_store() -> StoreRepository:
    """Return the store for the current app, building the Sanity client once."""
    app = current_app
    store = app.extensions.get(STORE_EXTENSION_KEY)
    if store is not None:
        return store

    if app.config.get("STORE_BACKEND") == "sql":
        # One SQLAlchemy session per request, closed on app-context teardown
        return SqlStore(get_db())

    store = SanityStore.from_config(app.config)
    app.extensions[STORE_EXTENSION_KEY] = store
    return store


__all__ = [
    "get_store",
    "STORE_EXTENSION_KEY",
    "StoreRepository",
    "StoreError",
    "ProductNotFound",
    "SanityStore",
    "SqlStore",
]
