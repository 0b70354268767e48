from __future__ import annotations

import pytest

from src.models import payment_method_label, PaymentMethod
from src.store import ProductNotFound, SqlStore


def test_orders_are_served_as_documents(db_session):
    orders = SqlStore(db_session).list_orders()

    assert [order["orderId"] for order in orders] == ["ORD-1001", "ORD-1002", "ORD-1003"]
    first = orders[0]
    assert first["_id"] == "checkout-1"
    assert first["_createdAt"] == "2025-01-05T12:00:00Z"
    assert first["cartItems"][1] == {"title": "Lolito", "price": 100.5, "quantity": 1}


def test_products_are_sorted_by_title(db_session):
    titles = [product["title"] for product in SqlStore(db_session).list_products()]

    assert titles == ["Asgaard sofa", "Lolito", "Syltherine"]


def test_update_product_persists_fields(db_session):
    store = SqlStore(db_session)

    updated = store.update_product("product-2", {"price": 95.0, "tags": ["chair", "sale"], "unknown": 1})

    assert updated["price"] == 95.0
    assert updated["tags"] == ["chair", "sale"]
    assert store.get_product("product-2")["price"] == 95.0


def test_update_and_delete_missing_product(db_session):
    store = SqlStore(db_session)

    with pytest.raises(ProductNotFound):
        store.update_product("missing", {"price": 1.0})
    with pytest.raises(ProductNotFound):
        store.delete_product("missing")


def test_delete_product(db_session):
    store = SqlStore(db_session)

    store.delete_product("product-1")

    assert store.get_product("product-1") is None


def test_ping(db_session):
    SqlStore(db_session).ping()


def test_payment_method_label():
    assert payment_method_label("bank-transfer") == "Bank Transfer"
    assert payment_method_label(PaymentMethod.CASH_ON_DELIVERY) == "Cash on Delivery"
    assert payment_method_label("paypal") == "paypal"
