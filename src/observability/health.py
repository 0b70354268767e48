from __future__ import annotations

from typing import Dict

from src.store import StoreError, StoreRepository


def check_store_health(store: StoreRepository) -> Dict[str, str]:
    """Run the store's cheapest round trip to confirm the backend answers."""
    try:
        store.ping()
        return {"status": "UP", "backend": store.name}
    except StoreError as exc:
        return {"status": "DOWN", "backend": store.name, "detail": str(exc)}
