"""SQLAlchemy-backed store used for local development and tests."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import CheckoutOrder, Product
from src.store.base import ProductNotFound, StoreError, StoreRepository


class SqlStore(StoreRepository):
    name = "sql"

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list_orders(self) -> List[Dict[str, Any]]:
        try:
            rows = self.db.query(CheckoutOrder).order_by(CheckoutOrder.created_at).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load orders: {exc}") from exc
        return [row.to_document() for row in rows]

    def list_products(self) -> List[Dict[str, Any]]:
        try:
            rows = self.db.query(Product).order_by(Product.title).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load products: {exc}") from exc
        return [row.to_document() for row in rows]

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        try:
            product = self.db.get(Product, product_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load product {product_id}: {exc}") from exc
        return product.to_document() if product else None

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        try:
            product = self.db.get(Product, product_id)
            if product is None:
                raise ProductNotFound(product_id)
            product.apply_fields(fields)
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"Could not update product {product_id}: {exc}") from exc
        return product.to_document()

    def delete_product(self, product_id: str) -> None:
        try:
            product = self.db.get(Product, product_id)
            if product is None:
                raise ProductNotFound(product_id)
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"Could not delete product {product_id}: {exc}") from exc

    def ping(self) -> None:
        try:
            self.db.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc
