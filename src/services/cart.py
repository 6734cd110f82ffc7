"""
Client-held cart.

The cart lives on the client (here: a JSON file per user in local storage).
Its cached unit prices are only a display estimate; checkout sends
``checkout_items()`` (product id + quantity) and the server re-prices.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Tuple

from db.models import MAX_INTEGER, Product, to_money
from services.errors import InsufficientStock, InvalidInput
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class CartEntry:
    pid: int
    qty: int
    unit_price: Decimal  # cached when added, may be stale
    name: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.qty


@dataclass
class CartSession:
    """Ordered list of cart entries, at most one per product."""

    entries: List[CartEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def find(self, pid: int) -> Optional[CartEntry]:
        for entry in self.entries:
            if entry.pid == pid:
                return entry
        return None

    def add(self, product: Product, qty: int = 1) -> CartEntry:
        """
        Add ``qty`` of ``product``; an existing entry is incremented and its
        cached price refreshed. Refuses quantities beyond the known stock.
        """
        _check_qty(qty)
        entry = self.find(product.pid)
        new_qty = qty + (entry.qty if entry else 0)
        if new_qty > product.stock:
            raise InsufficientStock(
                pid=product.pid, requested=new_qty, available=product.stock
            )
        if entry is None:
            entry = CartEntry(product.pid, qty, to_money(product.price), product.name)
            self.entries.append(entry)
        else:
            entry.qty = new_qty
            entry.unit_price = to_money(product.price)
            entry.name = product.name
        return entry

    def set_qty(self, pid: int, qty: int, stock: Optional[int] = None) -> None:
        """Set the quantity of an entry; 0 removes it."""
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
            raise InvalidInput(f"Quantity cannot be {qty!r}", pid=pid, qty=qty)
        if qty == 0:
            self.remove(pid)
            return
        entry = self.find(pid)
        if entry is None:
            raise InvalidInput(f"Product {pid} is not in the cart", pid=pid)
        if stock is not None and qty > stock:
            raise InsufficientStock(pid=pid, requested=qty, available=stock)
        entry.qty = qty

    def remove(self, pid: int) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.pid != pid]
        return len(self.entries) != before

    def clear(self) -> None:
        self.entries.clear()

    def item_count(self) -> int:
        return sum(e.qty for e in self.entries)

    def subtotal(self) -> Decimal:
        """Estimate from cached prices; the order total is computed server side."""
        return sum((e.line_total for e in self.entries), Decimal("0.00"))

    def checkout_items(self) -> List[Tuple[int, int]]:
        return [(e.pid, e.qty) for e in self.entries]

    def to_json(self) -> str:
        return json.dumps(
            [
                {**asdict(e), "unit_price": str(e.unit_price)}
                for e in self.entries
            ],
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, raw: str) -> "CartSession":
        """Parse a stored cart; malformed entries are dropped."""
        entries: List[CartEntry] = []
        try:
            data = json.loads(raw or "[]")
        except json.JSONDecodeError:
            _logger.warning("Stored cart is not valid JSON, starting empty")
            return cls()
        for item in data if isinstance(data, list) else []:
            try:
                entry = CartEntry(
                    pid=int(item["pid"]),
                    qty=int(item["qty"]),
                    unit_price=to_money(item.get("unit_price", "0")),
                    name=str(item.get("name", "")),
                )
            except (KeyError, TypeError, ValueError, ArithmeticError):
                _logger.debug(f"Dropping malformed cart entry {item!r}")
                continue
            if entry.qty > 0:
                entries.append(entry)
        return cls(entries)


def _check_qty(qty) -> None:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise InvalidInput(f"Quantity must be a positive integer, got {qty!r}", qty=qty)
    if qty > MAX_INTEGER:
        raise InvalidInput("Quantity is too large", qty=qty)


class CartStore:
    """Per-user cart persistence in client-local storage."""

    def __init__(self, directory: str = config.CART_DIR) -> None:
        self.directory = Path(directory)

    def _path(self, uid: int) -> Path:
        return self.directory / f"cart-{uid}.json"

    def load(self, uid: int) -> CartSession:
        path = self._path(uid)
        if not path.exists():
            return CartSession()
        return CartSession.from_json(path.read_text(encoding="utf-8"))

    def save(self, uid: int, cart: CartSession) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(uid)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(cart.to_json(), encoding="utf-8")
        os.replace(tmp, path)

    def clear(self, uid: int) -> None:
        path = self._path(uid)
        if path.exists():
            path.unlink()
