# tests/conftest.py
"""
Pytest configuration and fixtures for the admin dashboard.

The environment is set before anything under ``src`` is imported because
Config reads it once at import time.
"""

import os
from datetime import datetime, timezone

os.environ["APP_ENV"] = "testing"
os.environ["FLASK_TESTING"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STORE_BACKEND"] = "sql"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ADMIN_EMAIL"] = "admin@furniro.com"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["STRUCTURED_LOGS_ENABLED"] = "false"
os.environ["DEFAULT_TIMEZONE"] = "UTC"

import pytest

from src.database import Base, SessionLocal, engine
from src.main import app
from src.models import CheckoutOrder, Product
from src.services.auth_service import SESSION_FLAG
from src.observability.metrics import reset_metrics
from src.store import STORE_EXTENSION_KEY, ProductNotFound, StoreError, StoreRepository

ADMIN_EMAIL = "admin@furniro.com"
ADMIN_PASSWORD = "admin123"


def _utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, 0, tzinfo=timezone.utc)


SAMPLE_ORDERS = [
    {
        "documentID": "checkout-1",
        "orderId": "ORD-1001",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phone": "+234 800 000 0001",
        "address": "12 Marina Road",
        "city": "Lagos",
        "province": "Lagos",
        "zipCode": "100001",
        "country": "Nigeria",
        "paymentMethod": "bank-transfer",
        "cartItems": [
            {"title": "Asgaard sofa", "price": 250, "quantity": 2},
            {"title": "Lolito", "price": 100.5, "quantity": 1},
        ],
        "created_at": _utc(2025, 1, 5),
    },
    {
        "documentID": "checkout-2",
        "orderId": "ORD-1002",
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "grace@example.com",
        "phone": "+92 300 0000002",
        "address": "7 Clifton Block",
        "city": "Karachi",
        "province": "Sindh",
        "zipCode": "75600",
        "country": "Pakistan",
        "paymentMethod": "cash-on-delivery",
        "cartItems": [
            {"title": "Asgaard sofa", "price": 250, "quantity": 1},
        ],
        "created_at": _utc(2025, 2, 10),
    },
    {
        "documentID": "checkout-3",
        "orderId": "ORD-1003",
        "firstName": "Alan",
        "lastName": "Turing",
        "email": "alan@example.com",
        "phone": "+234 800 000 0003",
        "address": "3 Allen Avenue",
        "city": "Lagos",
        "province": "Lagos",
        "zipCode": "100271",
        "country": "Nigeria",
        "paymentMethod": "cash-on-delivery",
        "cartItems": [
            {"title": "Syltherine", "price": 80, "quantity": 3},
        ],
        "created_at": _utc(2025, 2, 20),
    },
]

SAMPLE_PRODUCTS = [
    {
        "documentID": "product-1",
        "title": "Asgaard sofa",
        "productImage": "https://cdn.sanity.io/images/demo/production/asgaard.png",
        "price": 250.0,
        "originalPrice": 300.0,
        "discountPercentage": 17.0,
        "isNew": True,
        "tags": ["sofa", "living room"],
        "description": "A three-seater sofa in grey linen.",
        "quantity": 10,
    },
    {
        "documentID": "product-2",
        "title": "Lolito",
        "productImage": "https://cdn.sanity.io/images/demo/production/lolito.png",
        "price": 100.5,
        "originalPrice": 120.0,
        "discountPercentage": 16.0,
        "isNew": False,
        "tags": ["chair"],
        "description": "Luxury big sofa chair.",
        "quantity": 4,
    },
    {
        "documentID": "product-3",
        "title": "Syltherine",
        "productImage": None,
        "price": 80.0,
        "originalPrice": 80.0,
        "discountPercentage": 0.0,
        "isNew": False,
        "tags": [],
        "description": "Stylish cafe chair.",
        "quantity": 0,
    },
]

# Document-shaped copies of the seed data, as the content API returns them
ORDER_DOCUMENTS = [
    {
        "_id": order["documentID"],
        "orderId": order["orderId"],
        "firstName": order["firstName"],
        "lastName": order["lastName"],
        "email": order["email"],
        "city": order["city"],
        "paymentMethod": order["paymentMethod"],
        "cartItems": [dict(item) for item in order["cartItems"]],
        "_createdAt": order["created_at"].strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    for order in SAMPLE_ORDERS
]


class FakeStore(StoreRepository):
    """In-memory store; set ``fail`` to make every call raise StoreError."""

    name = "fake"

    def __init__(self, orders=None, products=None, fail=False):
        self.orders = [dict(order) for order in (orders or [])]
        self.products = {product["_id"]: dict(product) for product in (products or [])}
        self.fail = fail
        self.updates = []

    def _check(self):
        if self.fail:
            raise StoreError("store unavailable")

    def list_orders(self):
        self._check()
        return [dict(order) for order in self.orders]

    def list_products(self):
        self._check()
        return [dict(product) for product in self.products.values()]

    def get_product(self, product_id):
        self._check()
        product = self.products.get(product_id)
        return dict(product) if product else None

    def update_product(self, product_id, fields):
        self._check()
        if product_id not in self.products:
            raise ProductNotFound(product_id)
        self.updates.append((product_id, dict(fields)))
        self.products[product_id].update(fields)
        return dict(self.products[product_id])

    def delete_product(self, product_id):
        self._check()
        if self.products.pop(product_id, None) is None:
            raise ProductNotFound(product_id)

    def ping(self):
        self._check()


def _product_documents():
    documents = []
    for product in SAMPLE_PRODUCTS:
        document = {key: value for key, value in product.items() if key != "documentID"}
        document["_id"] = product["documentID"]
        documents.append(document)
    return documents


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def seeded_db():
    """Create the tables and seed the sample checkouts and products."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        for order in SAMPLE_ORDERS:
            session.add(CheckoutOrder(**order))
        for product in SAMPLE_PRODUCTS:
            session.add(Product(**product))
        session.commit()
    finally:
        session.close()

    yield

    session = SessionLocal()
    try:
        session.query(CheckoutOrder).delete(synchronize_session=False)
        session.query(Product).delete(synchronize_session=False)
        session.commit()
    finally:
        session.close()


@pytest.fixture
def db_session(seeded_db):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def order_documents():
    return [dict(order, cartItems=[dict(item) for item in order["cartItems"]]) for order in ORDER_DOCUMENTS]


@pytest.fixture
def product_documents():
    return _product_documents()


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def fake_store(order_documents, product_documents):
    return FakeStore(orders=order_documents, products=product_documents)


@pytest.fixture
def failing_store():
    return FakeStore(fail=True)


@pytest.fixture
def client(seeded_db):
    app.extensions.pop(STORE_EXTENSION_KEY, None)
    yield app.test_client()
    app.extensions.pop(STORE_EXTENSION_KEY, None)


@pytest.fixture
def logged_in_client(client):
    with client.session_transaction() as sess:
        sess[SESSION_FLAG] = True
    return client


@pytest.fixture
def use_store():
    """Swap the app's record store for the duration of a test."""

    def _install(store):
        app.extensions[STORE_EXTENSION_KEY] = store
        return store

    yield _install
    app.extensions.pop(STORE_EXTENSION_KEY, None)
