import os

from store_case import TEST_ROUNDS, StoreTestCase

from db.database import Database
from db.models import Role
from services.access import Actor
from services.accounts import AccountService, hash_password, verify_password
from services.errors import EmailTaken, InvalidInput, Unauthenticated
from services.orders import OrderService
from services.seed import DEMO_PASSWORD, PRODUCTS, USERS, demo_seeder


class AccountsTestCase(StoreTestCase):
    async def test_signup_creates_customers(self):
        user = await self.accounts.signup(
            " Carol ", "Carol@Example.com ", "secret", phone="0501", address="جدة"
        )
        self.assertEqual(user.name, "Carol")
        self.assertEqual(user.email, "Carol@Example.com")
        self.assertEqual(user.role, Role.CUSTOMER)
        self.assertNotEqual(user.pwd_hash, "secret")

    async def test_signup_rejects_duplicates_and_bad_input(self):
        with self.assertRaises(EmailTaken):
            await self.accounts.signup("Other Alice", "ALICE@example.com", "123456")
        with self.assertRaises(InvalidInput):
            await self.accounts.signup("x", "not-an-email", "123456")
        with self.assertRaises(InvalidInput):
            await self.accounts.signup("x", "x@example.com", "123")
        with self.assertRaises(InvalidInput):
            await self.accounts.signup("  ", "x@example.com", "123456")

    async def test_authenticate(self):
        user = await self.accounts.authenticate("alice@example.com", "123456")
        self.assertEqual(user.uid, self.alice.uid)
        self.assertIsNotNone(await self.accounts.authenticate("ALICE@example.com", "123456"))
        self.assertIsNone(await self.accounts.authenticate("alice@example.com", "wrong"))
        self.assertIsNone(await self.accounts.authenticate("nobody@example.com", "123456"))
        self.assertIsNone(await self.accounts.authenticate("", ""))

    async def test_profile(self):
        profile = await self.accounts.get_profile(self.bob)
        self.assertEqual(profile.email, "bob@example.com")

        updated = await self.accounts.update_profile(
            self.bob, name="Robert", address="الرياض"
        )
        self.assertEqual(updated.name, "Robert")
        self.assertEqual(updated.address, "الرياض")
        self.assertEqual(updated.email, "bob@example.com")

        cleared = await self.accounts.update_profile(self.bob, address="")
        self.assertIsNone(cleared.address)

        # the role is not self-service
        self.assertEqual(cleared.role, Role.CUSTOMER)

        with self.assertRaises(EmailTaken):
            await self.accounts.update_profile(self.bob, email="alice@example.com")
        with self.assertRaises(Unauthenticated):
            await self.accounts.get_profile(None)

    def test_password_hashing(self):
        hashed = hash_password("123456", TEST_ROUNDS)
        self.assertTrue(verify_password("123456", hashed))
        self.assertFalse(verify_password("1234567", hashed))
        self.assertFalse(verify_password("123456", "not-a-hash"))


class SeedTestCase(StoreTestCase):
    async def test_demo_data(self):
        seeded = Database(
            os.path.join(self.temp_dir.name, "seeded.sqlite"),
            seeder=demo_seeder(rounds=TEST_ROUNDS),
        )
        accounts = AccountService(seeded, rounds=TEST_ROUNDS)

        admin = await accounts.authenticate("admin@store.com", DEMO_PASSWORD)
        self.assertEqual(admin.role, Role.ADMINISTRATOR)
        ahmed = await accounts.authenticate("ahmed@example.com", DEMO_PASSWORD)
        self.assertEqual(ahmed.role, Role.CUSTOMER)

        async with seeded.connect() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM users;")
            self.assertEqual((await cur.fetchone())[0], len(USERS))
            await cur.close()
            cur = await conn.execute("SELECT COUNT(*) FROM products;")
            self.assertEqual((await cur.fetchone())[0], len(PRODUCTS))
            await cur.close()

        orders = await OrderService(seeded).list_all_orders(Actor.of(admin))
        self.assertEqual(len(orders), 3)
        for order in orders:
            self.assertEqual(order.total, sum(i.line_total for i in order.items))
