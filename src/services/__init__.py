from .analytics_service import AggregationResult, compute_order_analytics
from .auth_service import AuthService
from .order_service import OrderService
from .product_service import ProductService

__all__ = [
    "AggregationResult",
    "compute_order_analytics",
    "AuthService",
    "OrderService",
    "ProductService",
]
