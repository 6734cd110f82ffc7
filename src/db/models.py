# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Tuple

CENT = Decimal("0.01")
# largest value an SQLite INTEGER column can hold
MAX_INTEGER = 2**63 - 1


def to_money(value) -> Decimal:
    """Coerce a number/str to a Decimal rounded to cents."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMINISTRATOR = "admin"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


@dataclass(frozen=True)
class User:
    uid: int
    email: str
    pwd_hash: str
    name: str
    role: Role
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Product:
    pid: int
    name: str
    description: str
    price: Decimal
    category: str
    stock: int
    is_active: bool = True
    image: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OrderItem:
    ono: int
    line_no: int
    pid: int  # weak reference, the product may be gone
    product_name: str  # snapshot at order time
    qty: int
    price: Decimal  # unit price at time of order

    @property
    def line_total(self) -> Decimal:
        return self.price * self.qty


@dataclass(frozen=True)
class Order:
    ono: int
    uid: int
    status: OrderStatus
    total: Decimal
    payment_method: str
    created_at: datetime
    items: Tuple[OrderItem, ...] = field(default_factory=tuple)
    # units were returned to stock when this order was cancelled
    restocked: bool = False
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
