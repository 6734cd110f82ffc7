"""
Order creation and the order status state machine.

Checkout runs as a single ``BEGIN IMMEDIATE`` transaction: product lookup,
order/item inserts and the conditional stock decrements either all commit or
none do, and concurrent checkouts against the same product are serialized so
stock can never go negative.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

import aiosqlite

from db import crud
from db.database import Database
from db.models import MAX_INTEGER, Order, OrderStatus, Product, to_money
from services.access import Actor, Operation, authorize
from services.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidInput,
    InvalidStatus,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    Unauthenticated,
    lock_conflicts,
)
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

# forward lifecycle; DELIVERED and CANCELLED are terminal
LIFECYCLE: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CheckoutEntry = Tuple[int, int]  # (pid, qty)


def parse_status(value: Union[OrderStatus, str, None]) -> OrderStatus:
    """Accept an OrderStatus or its name (case-insensitive)."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        try:
            return OrderStatus(value.strip().upper())
        except ValueError:
            pass
    raise InvalidStatus(status=value)


def next_statuses(status: OrderStatus) -> FrozenSet[OrderStatus]:
    """Statuses reachable from ``status`` along the normal lifecycle."""
    return LIFECYCLE[status]


def _validate_entries(entries: Optional[Iterable[CheckoutEntry]]) -> List[CheckoutEntry]:
    validated: List[CheckoutEntry] = []
    for entry in entries or ():
        try:
            pid, qty = entry
        except (TypeError, ValueError):
            raise InvalidInput(f"Malformed cart entry: {entry!r}", entry=entry)
        # bool is an int subclass, reject it explicitly
        if isinstance(pid, bool) or not isinstance(pid, int):
            raise InvalidInput(f"Malformed product id: {pid!r}", pid=pid)
        if (
            isinstance(qty, bool)
            or not isinstance(qty, int)
            or not 1 <= qty <= MAX_INTEGER
        ):
            raise InvalidInput(
                f"Quantity must be a positive integer, got {qty!r}", pid=pid, qty=qty
            )
        validated.append((pid, qty))
    if not validated:
        raise EmptyCart()
    return validated


class OrderService:
    """Checkout, order reads and status transitions."""

    def __init__(
        self,
        database: Database,
        restock_on_cancel: bool = config.RESTOCK_ON_CANCEL,
        strict_admin_transitions: bool = config.STRICT_ADMIN_TRANSITIONS,
    ) -> None:
        self.db = database
        self.restock_on_cancel = restock_on_cancel
        self.strict_admin_transitions = strict_admin_transitions

    # ---------------------------
    # Checkout
    # ---------------------------

    async def create_order(
        self, actor: Optional[Actor], entries: Sequence[CheckoutEntry]
    ) -> Order:
        """
        Turn (pid, qty) cart entries into a PENDING order for ``actor``.

        Prices come from the product rows, never from the client. Raises
        Unauthenticated, EmptyCart/InvalidInput, ProductNotFound,
        InsufficientStock or Conflict; on any failure nothing is written.
        """
        if actor is None:
            raise Unauthenticated(operation=Operation.CREATE_ORDER.value)
        authorize(actor, Operation.CREATE_ORDER)
        lines = _validate_entries(entries)

        async with lock_conflicts(), self.db.transaction() as conn:
            products = await self._resolve_products(conn, lines)

            try:
                total = to_money(
                    sum((products[pid].price * qty for pid, qty in lines), Decimal("0.00"))
                )
            except InvalidOperation:
                raise InvalidInput("Order total is too large", lines=len(lines))
            ono = await crud.insert_order(conn, actor.uid, total)
            await crud.insert_order_items(
                conn,
                ono,
                [
                    (pid, products[pid].name, qty, products[pid].price)
                    for pid, qty in lines
                ],
            )
            for pid, qty in lines:
                if not await crud.decrement_stock_if_available(conn, pid, qty):
                    available = await crud.product_stock(conn, pid)
                    _logger.info(
                        f"Checkout rejected for user {actor.uid}: product {pid} "
                        f"requested {qty}, available {available}"
                    )
                    raise InsufficientStock(
                        pid=pid, requested=qty, available=available or 0
                    )
            order = await crud.get_order(conn, ono)

        _logger.info(
            f"Order #{order.ono} created for user {actor.uid}: "
            f"{len(order.items)} item(s), total {to_money(order.total)}"
        )
        return order

    @staticmethod
    async def _resolve_products(
        conn: aiosqlite.Connection, lines: Sequence[CheckoutEntry]
    ) -> Dict[int, Product]:
        products: Dict[int, Product] = {}
        for pid, _ in lines:
            if pid in products:
                continue
            product = await crud.get_product(conn, pid)
            if product is None or not product.is_active:
                raise ProductNotFound(pid=pid)
            products[pid] = product
        return products

    # ---------------------------
    # Status transitions
    # ---------------------------

    async def set_order_status(
        self,
        actor: Optional[Actor],
        ono: int,
        new_status: Union[OrderStatus, str],
    ) -> Order:
        """
        Move order ``ono`` to ``new_status``.

        Customers may only confirm their own pending order; administrators may
        set any status (restricted to the lifecycle in strict mode). Setting
        the current status again is a successful no-op.
        """
        if actor is None:
            raise Unauthenticated(operation=Operation.SET_ORDER_STATUS.value)
        target = parse_status(new_status)

        async with lock_conflicts(), self.db.transaction() as conn:
            order = await crud.get_order(conn, ono)
            if order is None:
                raise OrderNotFound(ono=ono)
            authorize(actor, Operation.SET_ORDER_STATUS, order, target)

            if order.status == target:
                return order

            if (
                actor.is_admin
                and self.strict_admin_transitions
                and target not in LIFECYCLE[order.status]
            ):
                raise InvalidTransition(
                    current=order.status.value, requested=target.value
                )

            restocked = await self._apply_restock_policy(conn, order, target)
            await crud.set_order_status(conn, ono, target, restocked=restocked)
            updated = await crud.get_order(conn, ono)

        _logger.info(
            f"Order #{ono} status {order.status.value} -> {target.value} "
            f"by {actor.role.value} {actor.uid}"
        )
        return updated

    async def confirm_order(self, actor: Optional[Actor], ono: int) -> Order:
        """The customer's 'confirm my order' action."""
        return await self.set_order_status(actor, ono, OrderStatus.CONFIRMED)

    async def _apply_restock_policy(
        self, conn: aiosqlite.Connection, order: Order, target: OrderStatus
    ) -> bool:
        """Move stock for a cancel/revive; return the order's new ``restocked`` flag.

        Only orders whose units were actually released are re-reserved when
        revived, whatever ``restock_on_cancel`` says now.
        """
        if target == OrderStatus.CANCELLED:
            if not self.restock_on_cancel:
                return False
            for item in order.items:
                await crud.increment_stock(conn, item.pid, item.qty)
            _logger.info(f"Order #{order.ono} cancelled, stock released")
            return True
        if order.restocked:
            # reviving a cancelled order takes its units again
            for item in order.items:
                if not await crud.decrement_stock_if_available(conn, item.pid, item.qty):
                    available = await crud.product_stock(conn, item.pid)
                    raise InsufficientStock(
                        pid=item.pid, requested=item.qty, available=available or 0
                    )
            _logger.info(f"Order #{order.ono} revived, stock reserved again")
        return False

    # ---------------------------
    # Reads
    # ---------------------------

    async def get_order(self, actor: Optional[Actor], ono: int) -> Order:
        """A single order, visible to its owner or any administrator."""
        if actor is None:
            raise Unauthenticated(operation=Operation.VIEW_ORDER.value)
        async with self.db.connect() as conn:
            order = await crud.get_order(conn, ono)
        if order is None:
            raise OrderNotFound(ono=ono)
        authorize(actor, Operation.VIEW_ORDER, order)
        return order

    async def list_user_orders(self, actor: Optional[Actor]) -> List[Order]:
        """The calling actor's own orders, newest first."""
        authorize(actor, Operation.LIST_OWN_ORDERS)
        async with self.db.connect() as conn:
            return await crud.list_orders_for_user(conn, actor.uid)

    async def list_all_orders(
        self, actor: Optional[Actor], status: Union[OrderStatus, str, None] = None
    ) -> List[Order]:
        """Every order with owner details (administrators only)."""
        authorize(actor, Operation.LIST_ALL_ORDERS)
        wanted = parse_status(status) if status else None
        async with self.db.connect() as conn:
            orders = await crud.list_all_orders(conn)
        if wanted is not None:
            orders = [o for o in orders if o.status == wanted]
        return orders
