"""
Arabic demo data for a fresh store: one administrator, two customers,
a small catalog and a few orders in different states.

Login with admin@store.com / 123456 (administrator) or
ahmed@example.com / 123456 (customer).
"""

from __future__ import annotations

from decimal import Decimal
from functools import partial
from typing import List, Tuple

import aiosqlite

from db import crud
from db.models import OrderStatus, Role
from services.accounts import hash_password
from utils.logger import get_logger

_logger = get_logger(__name__)

DEMO_PASSWORD = "123456"
PLACEHOLDER_IMAGE = "/placeholder-product.jpg"

USERS = [
    ("admin@store.com", "مدير المتجر", Role.ADMINISTRATOR, "+966501234567", "الرياض، المملكة العربية السعودية"),
    ("ahmed@example.com", "أحمد محمد", Role.CUSTOMER, "+966501234568", "جدة، المملكة العربية السعودية"),
    ("fatima@example.com", "فاطمة علي", Role.CUSTOMER, "+966501234569", "الدمام، المملكة العربية السعودية"),
]

# (name, description, price, category, stock)
PRODUCTS = [
    ("آيفون 15 برو", "أحدث إصدار من آيفون مع كاميرا محسنة ومعالج A17 Pro", "4999", "إلكترونيات", 50),
    ("سامسونج جالاكسي S24", "هاتف ذكي متطور مع شاشة ديناميكية وذكاء اصطناعي", "3999", "إلكترونيات", 30),
    ("ماك بوك برو M3", "لابتوب احترافي مع معالج M3 وأداء استثنائي", "8999", "إلكترونيات", 15),
    ("قميص قطني كلاسيكي", "قميص قطني ناعم ومريح للاستخدام اليومي", "89", "ملابس", 100),
    ("جينز أزرق داكن", "بنطلون جينز عالي الجودة بتصميم عصري", "199", "ملابس", 75),
    ("حذاء رياضي أبيض", "حذاء رياضي مريح للجري والمشي اليومي", "299", "أحذية", 60),
    ("حقيبة سفر كبيرة", "حقيبة سفر متينة بسعة كبيرة للسفر الطويل", "399", "إكسسوارات", 25),
    ("ساعة ذكية", "ساعة ذكية مع تتبع اللياقة البدنية وإشعارات الهاتف", "599", "إلكترونيات", 40),
    ("كتاب تطوير الويب", "كتاب شامل لتعلم تطوير المواقع والتطبيقات", "149", "كتب", 80),
    ("مقعد مكتب مريح", "مقعد مكتب مريح مع دعم للظهر والرقبة", "799", "أثاث", 20),
    ("طاولة طعام خشبية", "طاولة طعام أنيقة من الخشب الطبيعي", "1299", "أثاث", 10),
    ("مجموعة أدوات المطبخ", "مجموعة شاملة من أدوات المطبخ عالية الجودة", "199", "مطبخ", 35),
    ("مشروب طاقة", "مشروب طاقة طبيعي بدون سكر مضاف", "12", "مشروبات", 200),
    ("شوكولاتة داكنة", "شوكولاتة داكنة عضوية بنسبة 85% كاكاو", "25", "حلويات", 150),
    ("عطر رجالي فاخر", "عطر رجالي أنيق برائحة خشبية دافئة", "299", "عطور", 45),
]

# (customer index in USERS, status, [(product index, qty)])
ORDERS: List[Tuple[int, OrderStatus, List[Tuple[int, int]]]] = [
    (1, OrderStatus.CONFIRMED, [(0, 1), (3, 1), (5, 1)]),
    (2, OrderStatus.SHIPPED, [(4, 1), (6, 1), (8, 1), (13, 2)]),
    (1, OrderStatus.PENDING, [(7, 1), (9, 1)]),
]


async def seed_demo_data(conn: aiosqlite.Connection, rounds: int = 12) -> None:
    """Insert the demo users, products and orders into an empty store."""
    pwd_hash = hash_password(DEMO_PASSWORD, rounds)
    uids = [
        await crud.insert_user(conn, email, pwd_hash, name, role, phone, address)
        for email, name, role, phone, address in USERS
    ]

    products = []
    for name, descr, price, category, stock in PRODUCTS:
        pid = await crud.insert_product(
            conn, name, descr, Decimal(price), category, stock, True, PLACEHOLDER_IMAGE
        )
        products.append((pid, name, Decimal(price)))

    # historical orders: totals follow their lines, stock is left as listed
    for user_idx, status, lines in ORDERS:
        picked = [(products[i], qty) for i, qty in lines]
        total = sum((price * qty for (_, _, price), qty in picked), Decimal("0.00"))
        ono = await crud.insert_order(conn, uids[user_idx], total, status)
        await crud.insert_order_items(
            conn, ono, [(pid, name, qty, price) for (pid, name, price), qty in picked]
        )

    _logger.info(
        f"Seeded {len(uids)} users, {len(products)} products, {len(ORDERS)} orders"
    )


def demo_seeder(rounds: int = 12):
    """Seeder callable suitable for ``Database(seeder=...)``."""
    return partial(seed_demo_data, rounds=rounds)
