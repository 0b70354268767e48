"""Record store contract shared by the hosted content API and the local database."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class StoreError(RuntimeError):
    """Raised when the record store cannot be read or written."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProductNotFound(StoreError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class StoreRepository(ABC):
    """
    Narrow interface between the dashboard and wherever checkout/product
    documents live. Documents are plain dicts using the content API's field
    names (``_id``, ``orderId``, ``cartItems``, ``_createdAt`` ...).
    """

    name = "store"

    @abstractmethod
    def list_orders(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def list_products(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Set ``fields`` on the product and return the updated document."""

    @abstractmethod
    def delete_product(self, product_id: str) -> None:
        ...

    @abstractmethod
    def ping(self) -> None:
        """Raise StoreError when the backend is unreachable."""
