# src/models.py
from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Boolean,
    Text,
    JSON,
)

# Use a single, shared Base for all models
from src.database import Base


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank-transfer"
    CASH_ON_DELIVERY = "cash-on-delivery"


PAYMENT_METHOD_LABELS: Dict[str, str] = {
    PaymentMethod.BANK_TRANSFER.value: "Bank Transfer",
    PaymentMethod.CASH_ON_DELIVERY.value: "Cash on Delivery",
}


def payment_method_label(value: Any) -> Any:
    """Display label for a checkout payment method; unknown values pass through."""
    if isinstance(value, PaymentMethod):
        value = value.value
    return PAYMENT_METHOD_LABELS.get(value, value)


def _new_document_id() -> str:
    return uuid4().hex


def _format_document_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class CheckoutOrder(Base):
    """A storefront checkout, stored in the same shape the content API serves."""

    __tablename__ = 'Checkout'

    documentID = Column('_id', String(64), primary_key=True, default=_new_document_id)
    orderId = Column(String(64), unique=True, nullable=False)
    firstName = Column(String(255))
    lastName = Column(String(255))
    email = Column(String(255))
    phone = Column(String(64))
    address = Column(String(512))
    city = Column(String(255))
    province = Column(String(255))
    zipCode = Column(String(32))
    country = Column(String(255))
    additionalInfo = Column(Text)
    paymentMethod = Column(String(64))
    cartItems = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.documentID,
            "orderId": self.orderId,
            "firstName": self.firstName,
            "lastName": self.lastName,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "province": self.province,
            "zipCode": self.zipCode,
            "country": self.country,
            "additionalInfo": self.additionalInfo,
            "paymentMethod": self.paymentMethod,
            "cartItems": list(self.cartItems or []),
            "_createdAt": _format_document_timestamp(self.created_at),
        }

    def __repr__(self):
        return f"<CheckoutOrder(orderId='{self.orderId}', city='{self.city}')>"


class Product(Base):
    __tablename__ = 'Product'

    # Document field name -> mapped attribute
    EDITABLE_FIELDS = {
        "title": "title",
        "price": "price",
        "originalPrice": "originalPrice",
        "discountPercentage": "discountPercentage",
        "isNew": "isNew",
        "tags": "tags",
        "description": "description",
        "quantity": "quantity",
    }

    documentID = Column('_id', String(64), primary_key=True, default=_new_document_id)
    title = Column(String(255), nullable=False)
    productImage = Column(String(1024))
    price = Column(Float, nullable=False, default=0.0)
    originalPrice = Column(Float, nullable=False, default=0.0)
    discountPercentage = Column(Float, nullable=False, default=0.0)
    isNew = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    description = Column(Text)
    quantity = Column(Integer, nullable=False, default=0)

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.documentID,
            "title": self.title,
            "productImage": self.productImage,
            "price": self.price,
            "originalPrice": self.originalPrice,
            "discountPercentage": self.discountPercentage,
            "isNew": bool(self.isNew),
            "tags": list(self.tags or []),
            "description": self.description,
            "quantity": self.quantity,
        }

    def apply_fields(self, fields: Dict[str, Any]) -> None:
        """Set document fields on the row; unknown keys are ignored."""
        for key, value in fields.items():
            attribute = self.EDITABLE_FIELDS.get(key)
            if attribute is not None:
                setattr(self, attribute, value)

    def __repr__(self):
        return f"<Product(title='{self.title}', price={self.price})>"
