from __future__ import annotations

from src.observability.metrics import registry


def test_orders_api_filters_and_pages(logged_in_client):
    response = logged_in_client.get("/api/orders?q=lagos&sort=orderId&direction=asc")

    assert response.status_code == 200
    body = response.get_json()
    # City is not a search field
    assert body["total_count"] == 0

    body = logged_in_client.get("/api/orders?q=ada").get_json()
    assert body["total_count"] == 1
    order = body["orders"][0]
    assert order["orderId"] == "ORD-1001"
    assert order["total"] == 600.5
    assert order["paymentLabel"] == "Bank Transfer"


def test_orders_api_default_sort_is_newest_first(logged_in_client):
    body = logged_in_client.get("/api/orders").get_json()

    assert [order["orderId"] for order in body["orders"]] == ["ORD-1003", "ORD-1002", "ORD-1001"]
    assert body["filters_applied"] == {"search": "", "sort": "_createdAt", "direction": "desc"}


def test_orders_api_reports_store_failure(logged_in_client, use_store, failing_store):
    use_store(failing_store)

    response = logged_in_client.get("/api/orders")

    assert response.status_code == 200
    body = response.get_json()
    assert body["orders"] == []
    assert body["error"] == "Failed to fetch orders"


def test_products_api_lists_products(logged_in_client):
    body = logged_in_client.get("/api/products").get_json()

    assert body["total_count"] == 3
    assert body["page_size"] == 8
    assert {product["_id"] for product in body["products"]} == {"product-1", "product-2", "product-3"}


def test_get_product_api(logged_in_client):
    assert logged_in_client.get("/api/products/product-2").get_json()["product"]["title"] == "Lolito"
    assert logged_in_client.get("/api/products/missing").status_code == 404


def test_patch_product(logged_in_client):
    response = logged_in_client.patch("/api/products/product-1", json={"price": 199, "quantity": 10})

    assert response.status_code == 200
    body = response.get_json()
    assert body["message"] == "Product updated successfully!"
    assert body["product"]["price"] == 199.0
    assert body["product"]["quantity"] == 10


def test_patch_product_without_changes(logged_in_client):
    response = logged_in_client.patch("/api/products/product-1", json={"title": "Asgaard sofa"})

    assert response.status_code == 200
    assert response.get_json()["message"] == "No changes detected."


def test_patch_product_validation_error(logged_in_client):
    response = logged_in_client.patch("/api/products/product-1", json={"quantity": -1})

    assert response.status_code == 400
    assert response.get_json()["error"].startswith("Invalid product data:")


def test_patch_product_requires_json_object(logged_in_client):
    response = logged_in_client.patch("/api/products/product-1", json=["price", 1])

    assert response.status_code == 400


def test_patch_unknown_product(logged_in_client):
    response = logged_in_client.patch("/api/products/missing", json={"price": 1})

    assert response.status_code == 404
    assert response.get_json() == {"error": "Product not found."}


def test_patch_product_store_failure(logged_in_client, use_store, failing_store):
    use_store(failing_store)

    response = logged_in_client.patch("/api/products/product-1", json={"price": 1})

    assert response.status_code == 502


def test_delete_product_api(logged_in_client):
    response = logged_in_client.delete("/api/products/product-2")

    assert response.status_code == 200
    assert response.get_json() == {"message": "Product deleted successfully!"}
    assert logged_in_client.delete("/api/products/product-2").status_code == 404


def test_delete_product_store_failure(logged_in_client, use_store, failing_store):
    use_store(failing_store)

    response = logged_in_client.delete("/api/products/product-2")

    assert response.status_code == 502
    assert response.get_json() == {"error": "Failed to delete product. Please try again."}


def test_analytics_api(logged_in_client):
    response = logged_in_client.get("/api/analytics")

    assert response.status_code == 200
    body = response.get_json()
    assert body["totalRevenue"] == 1090.5
    assert body["totalOrders"] == 3
    assert body["averageOrderValue"] == 363.5
    assert body["citiesReached"] == 2
    assert body["monthlySeries"] == [
        {"key": "2025-01", "month": "Jan", "sales": 600.5, "orders": 1},
        {"key": "2025-02", "month": "Feb", "sales": 490.0, "orders": 2},
    ]
    assert [(share["name"], share["value"]) for share in body["topProducts"]] == [
        ("Asgaard sofa", 3),
        ("Syltherine", 3),
        ("Lolito", 1),
    ]
    assert body["paymentMethodCounts"] == {"Bank Transfer": 1, "Cash on Delivery": 2}
    assert body["topCities"] == [{"name": "Lagos", "value": 2}, {"name": "Karachi", "value": 1}]
    assert registry.counter_total("analytics_runs_total") == 1


def test_analytics_api_returns_zeros_when_store_fails(logged_in_client, use_store, failing_store):
    use_store(failing_store)

    response = logged_in_client.get("/api/analytics")

    assert response.status_code == 200
    body = response.get_json()
    assert body["totalRevenue"] == 0
    assert body["topProducts"] == []
    assert body["error"] == "Failed to fetch orders"


def test_health_reports_store_status(client, use_store, failing_store):
    healthy = client.get("/health")
    assert healthy.status_code == 200
    assert healthy.get_json()["components"]["store"] == {"status": "UP", "backend": "sql"}

    use_store(failing_store)
    degraded = client.get("/health")
    assert degraded.status_code == 503
    assert degraded.get_json()["components"]["store"]["status"] == "DOWN"


def test_metrics_snapshot_counts_requests(logged_in_client):
    logged_in_client.get("/api/products")

    response = logged_in_client.get("/admin/metrics")

    assert response.status_code == 200
    counters = response.get_json()["counters"]
    assert "http_requests_total" in counters
    endpoints = {entry["labels"]["endpoint"] for entry in counters["http_requests_total"]}
    assert "api.list_products" in endpoints



def test_unknown_paths_share_one_metric_series(client):
    for index in range(50):
        client.get(f"/no-such-page-{index}")
        client.open(f"/no-such-page-{index}", method=f"BREW{index}")

    snapshot = registry.snapshot()
    endpoints = {entry["labels"]["endpoint"] for entry in snapshot["counters"]["http_requests_total"]}
    methods = {entry["labels"]["method"] for entry in snapshot["counters"]["http_requests_total"]}
    assert endpoints == {"unmatched"}
    assert methods == {"GET", "OTHER"}
    assert len(snapshot["histograms"]["http_request_latency_ms"]) == 2
