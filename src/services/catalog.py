"""
Product catalog: public browsing and administrator CRUD.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from db import crud
from db.database import Database
from db.models import MAX_INTEGER, Product, to_money
from services.access import Actor, Operation, authorize
from services.errors import InvalidInput, ProductNotFound, lock_conflicts
from utils.logger import get_logger

_logger = get_logger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "category", "stock", "is_active", "image")


def _clean_price(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput("Price must be a number", field="price")
    try:
        price = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput(f"Price must be a number, got {value!r}", field="price")
    if not price.is_finite() or price < 0:
        raise InvalidInput("Price must not be negative", field="price")
    return price


def _clean_stock(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInput("Stock must be an integer", field="stock")
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise InvalidInput(f"Stock must be an integer, got {value!r}", field="stock")
    if value < 0:
        raise InvalidInput("Stock must not be negative", field="stock")
    if value > MAX_INTEGER:
        raise InvalidInput("Stock is too large", field="stock")
    return value


def _clean_name(value: Any) -> str:
    name = str(value or "").strip()
    if not name:
        raise InvalidInput("Product name is required", field="name")
    return name


def clean_product_fields(fields: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate/normalize product fields; unknown keys are dropped."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        _logger.debug(f"Ignoring unknown product fields: {sorted(unknown)}")
    cleaned: Dict[str, Any] = {}
    if "name" in fields or not partial:
        cleaned["name"] = _clean_name(fields.get("name"))
    if "price" in fields or not partial:
        cleaned["price"] = _clean_price(fields.get("price"))
    if "stock" in fields or not partial:
        cleaned["stock"] = _clean_stock(fields.get("stock", 0))
    if "description" in fields or not partial:
        cleaned["description"] = str(fields.get("description") or "").strip()
    if "category" in fields or not partial:
        cleaned["category"] = str(fields.get("category") or "").strip()
    if "is_active" in fields or not partial:
        cleaned["is_active"] = bool(fields.get("is_active", True))
    if "image" in fields or not partial:
        image = fields.get("image")
        cleaned["image"] = str(image).strip() if image else None
    return cleaned


class CatalogService:
    def __init__(self, database: Database) -> None:
        self.db = database

    async def list_products(
        self,
        actor: Optional[Actor] = None,
        category: Optional[str] = None,
        query: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Product]:
        """Active products, newest first. Inactive ones only for administrators."""
        authorize(actor, Operation.BROWSE_PRODUCTS)
        if include_inactive:
            authorize(actor, Operation.MANAGE_PRODUCTS)
        async with self.db.connect() as conn:
            return await crud.list_products(
                conn, include_inactive=include_inactive, category=category, keyword=query
            )

    async def categories(self) -> List[str]:
        async with self.db.connect() as conn:
            return await crud.list_categories(conn)

    async def get_product(self, actor: Optional[Actor], pid: int) -> Product:
        """A product by id; inactive products are hidden from non-administrators."""
        authorize(actor, Operation.BROWSE_PRODUCTS)
        async with self.db.connect() as conn:
            product = await crud.get_product(conn, pid)
        if product is None or (
            not product.is_active and not (actor is not None and actor.is_admin)
        ):
            raise ProductNotFound(pid=pid)
        return product

    async def create_product(self, actor: Optional[Actor], **fields: Any) -> Product:
        authorize(actor, Operation.MANAGE_PRODUCTS)
        cleaned = clean_product_fields(fields)
        async with lock_conflicts(), self.db.transaction() as conn:
            pid = await crud.insert_product(conn, **cleaned)
            product = await crud.get_product(conn, pid)
        _logger.info(f"Product {pid} '{product.name}' created by admin {actor.uid}")
        return product

    async def update_product(
        self, actor: Optional[Actor], pid: int, **fields: Any
    ) -> Product:
        """Partial update; only the provided fields change."""
        authorize(actor, Operation.MANAGE_PRODUCTS)
        cleaned = clean_product_fields(fields, partial=True)
        async with lock_conflicts(), self.db.transaction() as conn:
            if not await crud.update_product(conn, pid, cleaned):
                raise ProductNotFound(pid=pid)
            product = await crud.get_product(conn, pid)
        _logger.info(
            f"Product {pid} updated by admin {actor.uid}: {sorted(cleaned)}"
        )
        return product

    async def delete_product(self, actor: Optional[Actor], pid: int) -> None:
        """Remove a product; existing order items keep their snapshot."""
        authorize(actor, Operation.MANAGE_PRODUCTS)
        async with lock_conflicts(), self.db.transaction() as conn:
            if not await crud.delete_product(conn, pid):
                raise ProductNotFound(pid=pid)
        _logger.info(f"Product {pid} deleted by admin {actor.uid}")
