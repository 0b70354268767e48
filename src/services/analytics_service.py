"""
Order analytics rollup.

Turns the checkout documents fetched from the store into the figures shown on
the analytics page: revenue, per-month sales, best-selling products, payment
method split and the busiest cities. The computation is a single pass over
an in-memory list and never raises on malformed records; bad cart items are
skipped individually and missing order fields just leave their bucket alone.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.models import payment_method_label

TOP_N = 5
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
# Chart slice colours; only need to be distinct within one result
PRODUCT_COLORS = (
    "#8884d8",
    "#82ca9d",
    "#ffc658",
    "#ff8042",
    "#0088fe",
    "#a4de6c",
    "#d0ed57",
    "#8dd1e1",
)
_ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlyPoint:
    key: str
    month: str
    sales: Decimal
    orders: int


@dataclass(frozen=True)
class ProductShare:
    name: str
    value: Any
    color: str


@dataclass(frozen=True)
class CityShare:
    name: str
    value: int


@dataclass(frozen=True)
class AggregationResult:
    total_revenue: Decimal = _ZERO
    total_orders: int = 0
    monthly_series: Tuple[MonthlyPoint, ...] = ()
    top_products: Tuple[ProductShare, ...] = ()
    payment_method_counts: Dict[str, int] = field(default_factory=dict)
    top_cities: Tuple[CityShare, ...] = ()
    cities_reached: int = 0

    @property
    def average_order_value(self) -> Decimal:
        if not self.total_orders:
            return _ZERO
        return self.total_revenue / self.total_orders

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRevenue": float(self.total_revenue),
            "totalOrders": self.total_orders,
            "averageOrderValue": round(float(self.average_order_value), 2),
            "citiesReached": self.cities_reached,
            "monthlySeries": [
                {
                    "key": point.key,
                    "month": point.month,
                    "sales": float(point.sales),
                    "orders": point.orders,
                }
                for point in self.monthly_series
            ],
            "topProducts": [
                {"name": share.name, "value": share.value, "color": share.color}
                for share in self.top_products
            ],
            "paymentMethodCounts": dict(self.payment_method_counts),
            "topCities": [{"name": share.name, "value": share.value} for share in self.top_cities],
        }


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Map a configured timezone name to tzinfo, falling back to UTC."""
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def compute_order_analytics(
    orders: Optional[Iterable[Any]],
    tz: Optional[tzinfo] = None,
    top_n: int = TOP_N,
) -> AggregationResult:
    """
    Aggregate checkout documents into an AggregationResult.

    ``orders`` is the list returned by the store (dicts with ``cartItems``,
    ``city``, ``paymentMethod`` and ``_createdAt``). Month buckets are taken
    in ``tz`` (UTC by default) and ordered chronologically by (year, month).
    """
    records = list(orders) if orders is not None else []
    tz = tz or timezone.utc

    total_revenue = _ZERO
    product_units: Dict[str, Decimal] = {}
    city_counts: Counter = Counter()
    payment_counts: Counter = Counter()
    monthly: Dict[Tuple[int, int], List[Any]] = {}

    for order in records:
        if not isinstance(order, Mapping):
            continue

        cart_items = order.get("cartItems")
        has_cart = isinstance(cart_items, list)
        order_total = _ZERO

        for item in cart_items if has_cart else ():
            amount = line_total(item)
            if amount is None:
                continue
            total_revenue += amount
            order_total += amount

            title = item.get("title")
            if isinstance(title, str) and title:
                product_units[title] = product_units.get(title, _ZERO) + _to_decimal(item["quantity"])

        city = order.get("city")
        if isinstance(city, str) and city:
            city_counts[city] += 1

        method = order.get("paymentMethod")
        if isinstance(method, str) and method:
            payment_counts[method] += 1

        created_at = parse_timestamp(order.get("_createdAt"))
        if created_at is not None and has_cart:
            local = created_at.astimezone(tz)
            bucket = monthly.setdefault((local.year, local.month), [_ZERO, 0])
            bucket[0] += order_total
            bucket[1] += 1

    return AggregationResult(
        total_revenue=total_revenue,
        total_orders=len(records),
        monthly_series=_monthly_series(monthly),
        top_products=tuple(
            ProductShare(
                name=name,
                value=_plain_number(units),
                color=PRODUCT_COLORS[index % len(PRODUCT_COLORS)],
            )
            for index, (name, units) in enumerate(_top(product_units, top_n))
        ),
        payment_method_counts=_payment_method_counts(payment_counts),
        top_cities=tuple(CityShare(name=name, value=count) for name, count in _top(city_counts, top_n)),
        cities_reached=len(city_counts),
    )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def _plain_number(value: Decimal) -> Any:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def line_total(item: Any) -> Optional[Decimal]:
    """price x quantity for a cart item, or None when either is not a number."""
    if not isinstance(item, Mapping):
        return None
    price = item.get("price")
    quantity = item.get("quantity")
    if not (_is_number(price) and _is_number(quantity)):
        return None
    return _to_decimal(price) * _to_decimal(quantity)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _top(counts: Mapping[str, Any], limit: int) -> List[Tuple[str, Any]]:
    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    return ranked[:max(limit, 0)]


def _monthly_series(monthly: Dict[Tuple[int, int], List[Any]]) -> Tuple[MonthlyPoint, ...]:
    return tuple(
        MonthlyPoint(
            key=f"{year:04d}-{month:02d}",
            month=MONTH_ABBREVIATIONS[month - 1],
            sales=sales,
            orders=count,
        )
        for (year, month), (sales, count) in sorted(monthly.items())
    )


def _payment_method_counts(payment_counts: Counter) -> Dict[str, int]:
    labelled: Dict[str, int] = {}
    for method, count in payment_counts.items():
        label = payment_method_label(method)
        labelled[label] = labelled.get(label, 0) + count
    return labelled


__all__ = [
    "TOP_N",
    "MonthlyPoint",
    "ProductShare",
    "CityShare",
    "AggregationResult",
    "resolve_timezone",
    "compute_order_analytics",
    "line_total",
    "parse_timestamp",
]
