# src/db/crud.py
"""
Row-level queries. Every function takes an open connection so services can
compose several of them inside one ``Database.transaction()``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import aiosqlite

from db import models

PRODUCT_COLUMNS = "pid, name, description, price, category, stock, is_active, image, created_at"
USER_COLUMNS = "uid, email, pwd_hash, name, role, phone, address, created_at"
ORDER_COLUMNS = (
    "o.ono, o.uid, o.status, o.total, o.payment_method, o.created_at, o.restocked"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_datetime(val) -> Optional[datetime]:
    if val is None or isinstance(val, datetime):
        return val
    try:
        return datetime.fromisoformat(str(val))
    except ValueError:
        return None


def _row_to_user(row) -> models.User:
    return models.User(
        uid=int(row[0]),
        email=row[1],
        pwd_hash=row[2],
        name=row[3],
        role=models.Role(row[4]),
        phone=row[5],
        address=row[6],
        created_at=_to_datetime(row[7]),
    )


def _row_to_product(row) -> models.Product:
    return models.Product(
        pid=int(row[0]),
        name=row[1],
        description=row[2] or "",
        price=Decimal(row[3]),
        category=row[4] or "",
        stock=int(row[5]),
        is_active=bool(row[6]),
        image=row[7],
        created_at=_to_datetime(row[8]),
    )


def _row_to_item(row) -> models.OrderItem:
    return models.OrderItem(
        ono=int(row[0]),
        line_no=int(row[1]),
        pid=int(row[2]),
        product_name=row[3],
        qty=int(row[4]),
        price=Decimal(row[5]),
    )


# ---------------------------
# Users
# ---------------------------


async def email_available(
    conn: aiosqlite.Connection, email: str, exclude_uid: Optional[int] = None
) -> bool:
    """True if no user already registered with the given email (case-insensitive)."""
    cur = await conn.execute(
        "SELECT uid FROM users WHERE email = ? COLLATE NOCASE LIMIT 1;", (email,)
    )
    row = await cur.fetchone()
    await cur.close()
    return row is None or (exclude_uid is not None and int(row[0]) == exclude_uid)


async def insert_user(
    conn: aiosqlite.Connection,
    email: str,
    pwd_hash: str,
    name: str,
    role: models.Role = models.Role.CUSTOMER,
    phone: Optional[str] = None,
    address: Optional[str] = None,
) -> int:
    """Create a user row and return its uid."""
    cur = await conn.execute(
        """
        INSERT INTO users(email, pwd_hash, name, role, phone, address, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?);
        """,
        (email, pwd_hash, name, role.value, phone, address, _now()),
    )
    uid = cur.lastrowid
    await cur.close()
    return int(uid)


async def get_user(conn: aiosqlite.Connection, uid: int) -> Optional[models.User]:
    """Return a User object for the given uid, or None if not found."""
    cur = await conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE uid = ?;", (uid,))
    row = await cur.fetchone()
    await cur.close()
    return _row_to_user(row) if row else None


async def get_user_by_email(
    conn: aiosqlite.Connection, email: str
) -> Optional[models.User]:
    cur = await conn.execute(
        f"SELECT {USER_COLUMNS} FROM users WHERE email = ? COLLATE NOCASE;", (email,)
    )
    row = await cur.fetchone()
    await cur.close()
    return _row_to_user(row) if row else None


async def update_user_profile(
    conn: aiosqlite.Connection,
    uid: int,
    name: str,
    email: str,
    phone: Optional[str],
    address: Optional[str],
) -> bool:
    """Overwrite the self-service profile fields. Return True if a row was updated."""
    cur = await conn.execute(
        "UPDATE users SET name = ?, email = ?, phone = ?, address = ? WHERE uid = ?;",
        (name, email, phone, address, uid),
    )
    updated = cur.rowcount > 0
    await cur.close()
    return updated


# ---------------------------
# Products
# ---------------------------


async def list_products(
    conn: aiosqlite.Connection,
    include_inactive: bool = False,
    category: Optional[str] = None,
    keyword: Optional[str] = None,
) -> List[models.Product]:
    """
    Catalog listing, newest first.
    Optional exact category filter and case-insensitive keyword over name/description.
    """
    clauses: List[str] = []
    params: List[object] = []
    if not include_inactive:
        clauses.append("is_active = 1")
    if category:
        clauses.append("category = ?")
        params.append(category)
    phrase = (keyword or "").strip().lower()
    if phrase:
        like = f"%{phrase}%"
        clauses.append("(LOWER(name) LIKE ? OR LOWER(description) LIKE ?)")
        params.extend([like, like])
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    cur = await conn.execute(
        f"""
        SELECT {PRODUCT_COLUMNS}
        FROM products
        {where}
        ORDER BY created_at DESC, pid DESC;
        """,
        tuple(params),
    )
    rows = await cur.fetchall()
    await cur.close()
    return [_row_to_product(row) for row in rows]


async def list_categories(conn: aiosqlite.Connection) -> List[str]:
    cur = await conn.execute(
        "SELECT DISTINCT category FROM products WHERE is_active = 1 AND category <> '' ORDER BY category;"
    )
    rows = await cur.fetchall()
    await cur.close()
    return [row[0] for row in rows]


async def get_product(conn: aiosqlite.Connection, pid: int) -> Optional[models.Product]:
    """Fetch a product by pid."""
    cur = await conn.execute(
        f"SELECT {PRODUCT_COLUMNS} FROM products WHERE pid = ?;", (pid,)
    )
    row = await cur.fetchone()
    await cur.close()
    return _row_to_product(row) if row else None


async def insert_product(
    conn: aiosqlite.Connection,
    name: str,
    description: str,
    price: Decimal,
    category: str,
    stock: int,
    is_active: bool = True,
    image: Optional[str] = None,
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO products(name, description, price, category, stock, is_active, image, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            name,
            description,
            str(models.to_money(price)),
            category,
            stock,
            int(is_active),
            image,
            _now(),
        ),
    )
    pid = cur.lastrowid
    await cur.close()
    return int(pid)


async def update_product(
    conn: aiosqlite.Connection, pid: int, fields: Dict[str, object]
) -> bool:
    """
    Update only the provided columns. Return True if a row was updated.
    """
    allowed = ("name", "description", "price", "category", "stock", "is_active", "image")
    sets: List[str] = []
    params: List[object] = []
    for col in allowed:
        if col not in fields:
            continue
        val = fields[col]
        if col == "price":
            val = str(models.to_money(val))
        elif col == "is_active":
            val = int(bool(val))
        sets.append(f"{col} = ?")
        params.append(val)
    if not sets:
        return await product_exists(conn, pid)
    params.append(pid)
    cur = await conn.execute(
        f"UPDATE products SET {', '.join(sets)} WHERE pid = ?;", tuple(params)
    )
    updated = cur.rowcount > 0
    await cur.close()
    return updated


async def delete_product(conn: aiosqlite.Connection, pid: int) -> bool:
    cur = await conn.execute("DELETE FROM products WHERE pid = ?;", (pid,))
    deleted = cur.rowcount > 0
    await cur.close()
    return deleted


async def product_exists(conn: aiosqlite.Connection, pid: int) -> bool:
    cur = await conn.execute("SELECT 1 FROM products WHERE pid = ?;", (pid,))
    row = await cur.fetchone()
    await cur.close()
    return row is not None


async def product_stock(conn: aiosqlite.Connection, pid: int) -> Optional[int]:
    cur = await conn.execute("SELECT stock FROM products WHERE pid = ?;", (pid,))
    row = await cur.fetchone()
    await cur.close()
    return int(row[0]) if row else None


async def decrement_stock_if_available(
    conn: aiosqlite.Connection, pid: int, qty: int
) -> bool:
    """
    Atomically take ``qty`` units from stock, only if that many are available.
    Return False (and change nothing) when stock is short or the product is gone.
    """
    cur = await conn.execute(
        "UPDATE products SET stock = stock - ? WHERE pid = ? AND stock >= ?;",
        (qty, pid, qty),
    )
    ok = cur.rowcount == 1
    await cur.close()
    return ok


async def increment_stock(conn: aiosqlite.Connection, pid: int, qty: int) -> bool:
    """Return units to stock; a deleted product is silently skipped (False)."""
    cur = await conn.execute(
        "UPDATE products SET stock = stock + ? WHERE pid = ?;", (qty, pid)
    )
    ok = cur.rowcount == 1
    await cur.close()
    return ok


# ---------------------------
# Orders
# ---------------------------


async def insert_order(
    conn: aiosqlite.Connection,
    uid: int,
    total: Decimal,
    status: models.OrderStatus = models.OrderStatus.PENDING,
    payment_method: str = "COD",
    created_at: Optional[datetime] = None,
) -> int:
    """Insert an order header and return the created order number (ono)."""
    ts = (created_at or datetime.now(timezone.utc)).isoformat()
    cur = await conn.execute(
        """
        INSERT INTO orders(uid, status, total, payment_method, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (uid, status.value, str(models.to_money(total)), payment_method, ts),
    )
    ono = cur.lastrowid
    await cur.close()
    return int(ono)


async def insert_order_items(
    conn: aiosqlite.Connection,
    ono: int,
    lines: Sequence[Tuple[int, str, int, Decimal]],
) -> None:
    """Insert (pid, product_name, qty, unit_price) lines numbered from 1."""
    cur = await conn.executemany(
        """
        INSERT INTO order_items(ono, line_no, pid, product_name, qty, price)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        [
            (ono, line_no, pid, name, qty, str(models.to_money(price)))
            for line_no, (pid, name, qty, price) in enumerate(lines, start=1)
        ],
    )
    await cur.close()


async def set_order_status(
    conn: aiosqlite.Connection,
    ono: int,
    status: models.OrderStatus,
    restocked: bool = False,
) -> bool:
    cur = await conn.execute(
        "UPDATE orders SET status = ?, restocked = ? WHERE ono = ?;",
        (status.value, int(restocked), ono),
    )
    ok = cur.rowcount > 0
    await cur.close()
    return ok


async def get_order_items(
    conn: aiosqlite.Connection, onos: Iterable[int]
) -> Dict[int, Tuple[models.OrderItem, ...]]:
    """Return {ono: items ordered by line_no} for the given order numbers."""
    onos = list(onos)
    if not onos:
        return {}
    marks = ", ".join("?" * len(onos))
    cur = await conn.execute(
        f"""
        SELECT ono, line_no, pid, product_name, qty, price
        FROM order_items
        WHERE ono IN ({marks})
        ORDER BY ono, line_no;
        """,
        tuple(onos),
    )
    rows = await cur.fetchall()
    await cur.close()
    grouped: Dict[int, List[models.OrderItem]] = {ono: [] for ono in onos}
    for row in rows:
        item = _row_to_item(row)
        grouped[item.ono].append(item)
    return {ono: tuple(items) for ono, items in grouped.items()}


async def _fetch_orders(
    conn: aiosqlite.Connection, where: str, params: tuple
) -> List[models.Order]:
    cur = await conn.execute(
        f"""
        SELECT {ORDER_COLUMNS}, u.name, u.email
        FROM orders o
        JOIN users u ON u.uid = o.uid
        {where}
        ORDER BY o.created_at DESC, o.ono DESC;
        """,
        params,
    )
    rows = await cur.fetchall()
    await cur.close()
    items = await get_order_items(conn, [int(row[0]) for row in rows])
    return [
        models.Order(
            ono=int(row[0]),
            uid=int(row[1]),
            status=models.OrderStatus(row[2]),
            total=Decimal(row[3]),
            payment_method=row[4],
            created_at=_to_datetime(row[5]),
            items=items.get(int(row[0]), ()),
            restocked=bool(row[6]),
            owner_name=row[7],
            owner_email=row[8],
        )
        for row in rows
    ]


async def get_order(conn: aiosqlite.Connection, ono: int) -> Optional[models.Order]:
    """Return the order with its items, or None."""
    orders = await _fetch_orders(conn, "WHERE o.ono = ?", (ono,))
    return orders[0] if orders else None


async def list_orders_for_user(
    conn: aiosqlite.Connection, uid: int
) -> List[models.Order]:
    """A user's orders in reverse chronological order."""
    return await _fetch_orders(conn, "WHERE o.uid = ?", (uid,))


async def list_all_orders(conn: aiosqlite.Connection) -> List[models.Order]:
    return await _fetch_orders(conn, "", ())


async def compute_order_total(conn: aiosqlite.Connection, ono: int) -> Decimal:
    """Recompute the grand total from the order's line items."""
    items = await get_order_items(conn, [ono])
    return sum((item.line_total for item in items[ono]), Decimal("0.00"))
