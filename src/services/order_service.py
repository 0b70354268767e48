"""
Order browsing for the dashboard.

Orders are fetched from the store in one call and then searched, sorted and
paginated in memory. Datasets are small enough that no query-side paging is
needed.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from src.config import Config
from src.models import payment_method_label
from src.observability import increment_counter, set_gauge
from src.services.analytics_service import line_total, parse_timestamp
from src.services.pagination import paginate
from src.store import StoreError, StoreRepository

logger = logging.getLogger(__name__)

SORT_KEYS = ("_createdAt", "orderId")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT = ("_createdAt", "desc")
FETCH_FAILED_MESSAGE = "Failed to fetch orders"


def filter_orders(orders: Iterable[Mapping[str, Any]], search: Optional[str]) -> List[Mapping[str, Any]]:
    """Case-insensitive match on order id, email, or "first last" name."""
    needle = (search or "").strip().lower()
    if not needle:
        return list(orders)

    matches = []
    for order in orders:
        order_id = str(order.get("orderId") or "").lower()
        email = str(order.get("email") or "").lower()
        name = f"{order.get('firstName') or ''} {order.get('lastName') or ''}".lower()
        if needle in order_id or needle in email or needle in name:
            matches.append(order)
    return matches


def normalize_sort(key: Optional[str], direction: Optional[str]) -> Tuple[str, str]:
    if key not in SORT_KEYS:
        key = DEFAULT_SORT[0]
    if direction not in SORT_DIRECTIONS:
        direction = DEFAULT_SORT[1]
    return key, direction


def sort_orders(orders: Iterable[Mapping[str, Any]], key: str, direction: str) -> List[Mapping[str, Any]]:
    key, direction = normalize_sort(key, direction)
    return sorted(
        orders,
        key=lambda order: str(order.get(key) or ""),
        reverse=direction == "desc",
    )


def toggle_sort(current_key: str, current_direction: str, key: str) -> Tuple[str, str]:
    """Clicking the active ascending column flips it to descending; anything else sorts ascending."""
    if current_key == key and current_direction == "asc":
        return key, "desc"
    return key, "asc"


def order_total(cart_items: Any) -> Decimal:
    if not isinstance(cart_items, list):
        return Decimal("0")
    total = Decimal("0")
    for item in cart_items:
        amount = line_total(item)
        if amount is not None:
            total += amount
    return total


def summarize_order(order: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of the order document with the display values the tables need."""
    created_at = parse_timestamp(order.get("_createdAt"))
    summary = dict(order)
    summary["customerName"] = f"{order.get('firstName') or ''} {order.get('lastName') or ''}".strip()
    summary["paymentLabel"] = payment_method_label(order.get("paymentMethod"))
    summary["total"] = float(order_total(order.get("cartItems")))
    summary["createdLabel"] = (
        f"{created_at:%b} {created_at.day}, {created_at.year}" if created_at else ""
    )
    summary["createdLongLabel"] = (
        f"{created_at:%B} {created_at.day}, {created_at.year}" if created_at else ""
    )
    cart_items = order.get("cartItems")
    line_items = []
    for item in cart_items if isinstance(cart_items, list) else ():
        amount = line_total(item)
        if amount is None:
            continue
        line_items.append({
            "title": item.get("title"),
            "quantity": item.get("quantity"),
            "price": item.get("price"),
            "total": float(amount),
        })
    summary["lineItems"] = line_items
    return summary


class OrderService:
    """Search, sort and paginate checkout documents fetched from the store."""

    def __init__(self, store: StoreRepository, page_size: Optional[int] = None) -> None:
        self.store = store
        self.page_size = page_size or Config.ORDERS_PAGE_SIZE

    def fetch_orders(self) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Return (orders, error message); a store failure yields an empty list."""
        try:
            orders = self.store.list_orders()
        except StoreError:
            logger.exception("Error fetching orders")
            increment_counter("store_errors_total", labels={"operation": "list_orders"})
            return [], FETCH_FAILED_MESSAGE
        set_gauge("orders_last_fetched", len(orders))
        return orders, None

    def browse(
        self,
        search: Optional[str] = None,
        sort_key: Optional[str] = None,
        direction: Optional[str] = None,
        page: int = 1,
    ) -> Dict[str, Any]:
        sort_key, direction = normalize_sort(sort_key, direction)
        orders, error = self.fetch_orders()
        matched = sort_orders(filter_orders(orders, search), sort_key, direction)
        current = paginate(matched, page, self.page_size)

        result: Dict[str, Any] = {
            "orders": [summarize_order(order) for order in current.items],
            "total_count": current.total_count,
            "page": current.page,
            "page_size": current.page_size,
            "total_pages": current.total_pages,
            "filters_applied": {
                "search": search or "",
                "sort": sort_key,
                "direction": direction,
            },
        }
        if error:
            result["error"] = error
        return result

    def get_order(self, order_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        orders, error = self.fetch_orders()
        for order in orders:
            if order.get("orderId") == order_id or order.get("_id") == order_id:
                return summarize_order(order), None
        return None, error
