from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import bleach

from src.config import Config
from src.observability import increment_counter, record_event
from src.services.pagination import paginate
from src.store import ProductNotFound, StoreError, StoreRepository

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch products"
UPDATED_MESSAGE = "Product updated successfully!"
UPDATE_FAILED_MESSAGE = "Failed to update product. Please try again."
NO_CHANGES_MESSAGE = "No changes detected."
DELETED_MESSAGE = "Product deleted successfully!"
DELETE_FAILED_MESSAGE = "Failed to delete product. Please try again."
NOT_FOUND_MESSAGE = "Product not found."

TEXT_FIELDS = ("title", "description")
# Field -> (parser, upper bound)
NUMERIC_FIELDS = {
    "price": (float, None),
    "originalPrice": (float, None),
    "discountPercentage": (float, 100.0),
    "quantity": (int, None),
}
TRUTHY_FORM_VALUES = {"1", "true", "yes", "on"}


class ProductValidationError(ValueError):
    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = errors


def _clean_text(value: Any) -> str:
    return bleach.clean(str(value), tags=[], strip=True).strip()


def _parse_number(raw: Any, parser, upper: Optional[float]) -> Any:
    if isinstance(raw, bool):
        raise ValueError("must be a number")
    if isinstance(raw, str):
        raw = raw.strip()
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise ValueError("must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError("must be a number")
    if parser is int:
        # Number inputs may submit "3.0" for a whole quantity
        if not number.is_integer():
            raise ValueError("must be a whole number")
        value = int(number)
    else:
        value = number
    if value < 0:
        raise ValueError("must not be negative")
    if upper is not None and value > upper:
        raise ValueError(f"must not exceed {upper:g}")
    return value


def _parse_tags(raw: Any) -> List[str]:
    if isinstance(raw, (list, tuple)):
        candidates = raw
    else:
        candidates = str(raw or "").split(",")
    return [tag for tag in (_clean_text(candidate) for candidate in candidates) if tag]


def _parse_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in TRUTHY_FORM_VALUES


def parse_product_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Turn submitted form/JSON values into typed product fields.

    Only keys present in ``payload`` are returned, so partial updates work.
    Raises ProductValidationError listing every invalid field.
    """
    fields: Dict[str, Any] = {}
    errors: Dict[str, str] = {}

    for name in TEXT_FIELDS:
        if name in payload:
            fields[name] = _clean_text(payload.get(name) or "")
    if "title" in fields and not fields["title"]:
        errors["title"] = "is required"

    for name, (parser, upper) in NUMERIC_FIELDS.items():
        if name not in payload:
            continue
        try:
            fields[name] = _parse_number(payload.get(name), parser, upper)
        except ValueError as exc:
            errors[name] = str(exc)

    if "tags" in payload:
        fields["tags"] = _parse_tags(payload.get("tags"))
    if "isNew" in payload:
        fields["isNew"] = _parse_flag(payload.get("isNew"))

    if errors:
        raise ProductValidationError(errors)
    return fields


def _same_number(current: Any, value: Any) -> bool:
    if current is None or isinstance(current, bool):
        return False
    try:
        return float(current) == float(value)
    except (TypeError, ValueError):
        return False


def changed_fields(original: Mapping[str, Any], candidate: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the candidate values that differ from the stored product."""
    changes: Dict[str, Any] = {}
    for name, value in candidate.items():
        current = original.get(name)
        if name in NUMERIC_FIELDS:
            if not _same_number(current, value):
                changes[name] = value
        elif name == "tags":
            if list(current or []) != list(value):
                changes[name] = value
        elif name == "isNew":
            if bool(current) != value:
                changes[name] = value
        elif (current or "") != value:
            changes[name] = value
    return changes


class ProductService:
    """Product listing and edit/delete flows on top of the record store."""

    def __init__(self, store: StoreRepository, page_size: Optional[int] = None) -> None:
        self.store = store
        self.page_size = page_size or Config.PRODUCTS_PAGE_SIZE

    def fetch_products(self) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        try:
            return self.store.list_products(), None
        except StoreError:
            logger.exception("Error fetching products")
            increment_counter("store_errors_total", labels={"operation": "list_products"})
            return [], FETCH_FAILED_MESSAGE

    def browse(self, page: int = 1) -> Dict[str, Any]:
        products, error = self.fetch_products()
        current = paginate(products, page, self.page_size)
        result: Dict[str, Any] = {
            "products": current.items,
            "total_count": current.total_count,
            "page": current.page,
            "page_size": current.page_size,
            "total_pages": current.total_pages,
        }
        if error:
            result["error"] = error
        return result

    def get_product(self, product_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        try:
            product = self.store.get_product(product_id)
        except StoreError:
            logger.exception("Error fetching product %s", product_id)
            increment_counter("store_errors_total", labels={"operation": "get_product"})
            return None, FETCH_FAILED_MESSAGE
        if product is None:
            return None, NOT_FOUND_MESSAGE
        return product, None

    def update_product(
        self,
        product_id: str,
        payload: Mapping[str, Any],
    ) -> Tuple[bool, str, Optional[Dict[str, Any]]]:
        """
        Validate ``payload`` and write only the fields that changed.

        Returns (success flag, message, product document or None).
        """
        product, error = self.get_product(product_id)
        if product is None:
            return False, error or NOT_FOUND_MESSAGE, None

        try:
            candidate = parse_product_payload(payload)
        except ProductValidationError as exc:
            return False, f"Invalid product data: {exc}", None

        updates = changed_fields(product, candidate)
        if not updates:
            return True, NO_CHANGES_MESSAGE, product

        try:
            updated = self.store.update_product(product_id, updates)
        except ProductNotFound:
            return False, NOT_FOUND_MESSAGE, None
        except StoreError:
            logger.exception("Failed to update product %s", product_id)
            increment_counter("store_errors_total", labels={"operation": "update_product"})
            return False, UPDATE_FAILED_MESSAGE, None

        logger.info(
            "Product updated",
            extra={"product_id": product_id, "fields": sorted(updates)},
        )
        record_event("product_updated", {"product_id": product_id, "fields": sorted(updates)})
        return True, UPDATED_MESSAGE, updated

    def delete_product(self, product_id: str) -> Tuple[bool, str]:
        try:
            self.store.delete_product(product_id)
        except ProductNotFound:
            return False, NOT_FOUND_MESSAGE
        except StoreError:
            logger.exception("Failed to delete product %s", product_id)
            increment_counter("store_errors_total", labels={"operation": "delete_product"})
            return False, DELETE_FAILED_MESSAGE

        logger.info("Product deleted", extra={"product_id": product_id})
        record_event("product_deleted", {"product_id": product_id})
        return True, DELETED_MESSAGE
