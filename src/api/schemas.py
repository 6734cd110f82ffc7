"""
Request/response models for the REST binding.

Field names on the wire follow the storefront client (camelCase); Python
attributes stay snake_case.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from db import models


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Auth


class SignupRequest(_Wire):
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="Plain password, hashed with bcrypt")
    phone: Optional[str] = None
    address: Optional[str] = None


class LoginRequest(_Wire):
    email: str
    password: str


class TokenResponse(_Wire):
    token: str
    user: "UserOut"


# Users


class UserOut(_Wire):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: str

    @classmethod
    def of(cls, user: models.User) -> "UserOut":
        return cls(
            id=user.uid,
            name=user.name,
            email=user.email,
            phone=user.phone,
            address=user.address,
            role=user.role.value,
        )


class ProfileUpdate(_Wire):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


# Products


class ProductIn(_Wire):
    name: str = Field(..., description="Product name")
    description: str = ""
    price: Decimal = Field(..., description="Unit price, non-negative")
    category: str = ""
    stock: int = Field(0, description="Units in stock, non-negative")
    image: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")


class ProductPatch(_Wire):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None
    stock: Optional[int] = None
    image: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")


class ProductOut(_Wire):
    id: int
    name: str
    description: str
    price: Decimal
    category: str
    stock: int
    is_active: bool = Field(..., serialization_alias="isActive")
    image: Optional[str] = None
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")

    @classmethod
    def of(cls, product: models.Product) -> "ProductOut":
        return cls(
            id=product.pid,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            stock=product.stock,
            is_active=product.is_active,
            image=product.image,
            created_at=product.created_at,
        )


# Orders


class OrderItemIn(_Wire):
    product_id: int = Field(..., alias="productId")
    quantity: int
    # client-cached price is accepted for compatibility and ignored
    price: Optional[Decimal] = None


class OrderCreate(_Wire):
    items: List[OrderItemIn] = Field(default_factory=list)


class StatusUpdate(_Wire):
    status: str


class OrderItemOut(_Wire):
    product_id: int = Field(..., serialization_alias="productId")
    product_name: str = Field(..., serialization_alias="productName")
    quantity: int
    price: Decimal


class OrderOwnerOut(_Wire):
    name: Optional[str] = None
    email: Optional[str] = None


class OrderOut(_Wire):
    id: int
    user_id: int = Field(..., serialization_alias="userId")
    status: str
    total: Decimal
    payment_method: str = Field(..., serialization_alias="paymentMethod")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    items: List[OrderItemOut] = Field(..., serialization_alias="orderItems")
    user: Optional[OrderOwnerOut] = None

    @classmethod
    def of(cls, order: models.Order, with_owner: bool = False) -> "OrderOut":
        return cls(
            id=order.ono,
            user_id=order.uid,
            status=order.status.value,
            total=order.total,
            payment_method=order.payment_method,
            created_at=order.created_at,
            items=[
                OrderItemOut(
                    product_id=i.pid,
                    product_name=i.product_name,
                    quantity=i.qty,
                    price=i.price,
                )
                for i in order.items
            ],
            user=(
                OrderOwnerOut(name=order.owner_name, email=order.owner_email)
                if with_owner
                else None
            ),
        )


class MessageOut(_Wire):
    message: str


TokenResponse.model_rebuild()
