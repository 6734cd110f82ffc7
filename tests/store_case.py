import os
import sys
import tempfile
import unittest
from decimal import Decimal

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.database import Database  # noqa: E402
from db.models import Product, Role  # noqa: E402
from services.access import Actor  # noqa: E402
from services.accounts import AccountService  # noqa: E402
from services.catalog import CatalogService  # noqa: E402
from services.orders import OrderService  # noqa: E402

# bcrypt's minimum cost keeps the suite fast
TEST_ROUNDS = 4


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """
    Fresh store per test: a temp SQLite file, the three services,
    one administrator and two customers.
    """

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self.db = Database(self.db_path, busy_timeout=5)
        self.accounts = AccountService(self.db, rounds=TEST_ROUNDS)
        self.catalog = CatalogService(self.db)
        self.orders = OrderService(
            self.db, restock_on_cancel=False, strict_admin_transitions=False
        )

    async def asyncSetUp(self):
        admin = await self.accounts.signup(
            "مدير المتجر", "admin@store.test", "123456", role=Role.ADMINISTRATOR
        )
        alice = await self.accounts.signup("Alice", "alice@example.com", "123456")
        bob = await self.accounts.signup("Bob", "bob@example.com", "123456")
        self.admin = Actor.of(admin)
        self.alice = Actor.of(alice)
        self.bob = Actor.of(bob)

    def tearDown(self):
        self.temp_dir.cleanup()

    async def make_product(
        self, stock: int = 10, price: str = "10.00", name: str = "منتج", **fields
    ) -> Product:
        fields.setdefault("category", "عام")
        return await self.catalog.create_product(
            self.admin, name=name, price=Decimal(price), stock=stock, **fields
        )

    async def stock_of(self, pid: int) -> int:
        return (await self.catalog.get_product(self.admin, pid)).stock

    async def count_rows(self, table: str) -> int:
        async with self.db.connect() as conn:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table};")
            (count,) = await cur.fetchone()
            await cur.close()
        return count
