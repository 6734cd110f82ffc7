import os
import tempfile
import unittest
from decimal import Decimal

from store_case import StoreTestCase

from db.models import MAX_INTEGER, Product
from services.cart import CartEntry, CartSession, CartStore
from services.errors import EmptyCart, InsufficientStock, InvalidInput
from utils.state import GlobalState


def product(pid: int = 1, price: str = "10.00", stock: int = 5, name: str = "قميص"):
    return Product(
        pid=pid,
        name=name,
        description="",
        price=Decimal(price),
        category="ملابس",
        stock=stock,
    )


class CartSessionTestCase(unittest.TestCase):
    def test_add_merges_and_refreshes_price(self):
        cart = CartSession()
        cart.add(product(price="10.00"), 2)
        cart.add(product(price="12.00"), 1)

        self.assertEqual(len(cart), 1)
        entry = cart.find(1)
        self.assertEqual(entry.qty, 3)
        self.assertEqual(entry.unit_price, Decimal("12.00"))
        self.assertEqual(cart.item_count(), 3)
        self.assertEqual(cart.subtotal(), Decimal("36.00"))

    def test_add_respects_known_stock(self):
        cart = CartSession()
        cart.add(product(stock=3), 2)
        with self.assertRaises(InsufficientStock):
            cart.add(product(stock=3), 2)
        self.assertEqual(cart.find(1).qty, 2)

    def test_bad_quantities(self):
        cart = CartSession()
        for qty in (0, -1, True, 1.0, MAX_INTEGER + 1):
            with self.assertRaises(InvalidInput):
                cart.add(product(), qty)
        self.assertFalse(cart)

    def test_set_qty_and_remove(self):
        cart = CartSession()
        cart.add(product(pid=1), 1)
        cart.add(product(pid=2), 1)

        cart.set_qty(1, 4)
        self.assertEqual(cart.find(1).qty, 4)
        with self.assertRaises(InsufficientStock):
            cart.set_qty(1, 9, stock=5)
        with self.assertRaises(InvalidInput):
            cart.set_qty(3, 1)

        cart.set_qty(2, 0)
        self.assertIsNone(cart.find(2))
        self.assertTrue(cart.remove(1))
        self.assertFalse(cart.remove(1))
        self.assertFalse(cart)

    def test_checkout_items_carry_no_prices(self):
        cart = CartSession()
        cart.add(product(pid=7), 2)
        cart.add(product(pid=3), 1)
        self.assertEqual(cart.checkout_items(), [(7, 2), (3, 1)])

    def test_json_roundtrip_and_garbage(self):
        cart = CartSession([CartEntry(1, 2, Decimal("4999.00"), "آيفون 15 برو")])
        restored = CartSession.from_json(cart.to_json())
        self.assertEqual(restored.entries, cart.entries)

        self.assertFalse(CartSession.from_json("not json"))
        self.assertFalse(CartSession.from_json('{"pid": 1}'))
        mixed = CartSession.from_json(
            '[{"pid": 1, "qty": 2, "unit_price": "1"}, {"qty": 1}, {"pid": 2, "qty": 0}]'
        )
        self.assertEqual(mixed.checkout_items(), [(1, 2)])


class CartStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = CartStore(os.path.join(self.temp_dir.name, "carts"))

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_carts_are_per_user(self):
        cart = CartSession()
        cart.add(product(), 2)
        self.store.save(1, cart)

        self.assertEqual(self.store.load(1).checkout_items(), [(1, 2)])
        self.assertFalse(self.store.load(2))

        self.store.clear(1)
        self.assertFalse(self.store.load(1))
        # clearing twice is fine
        self.store.clear(1)


class GlobalStateCheckoutTestCase(StoreTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.state = GlobalState(
            database=self.db,
            accounts=self.accounts,
            catalog=self.catalog,
            orders=self.orders,
            cart_store=CartStore(os.path.join(self.temp_dir.name, "carts")),
        )
        self.state.login(await self.accounts.get_user(self.alice.uid))

    async def test_checkout_uses_store_prices_and_empties_cart(self):
        p = await self.make_product(stock=5, price="10.00")
        # stale cached price in the client cart
        self.state.cart.add(p, 2)
        self.state.cart.find(p.pid).unit_price = Decimal("1.00")
        self.state.save_cart()

        order = await self.state.checkout()

        self.assertEqual(order.total, Decimal("20.00"))
        self.assertFalse(self.state.cart)
        self.assertFalse(self.state.cart_store.load(self.alice.uid))

    async def test_failed_checkout_keeps_cart(self):
        p = await self.make_product(stock=5)
        self.state.cart.add(p, 5)
        await self.catalog.update_product(self.admin, p.pid, stock=1)

        with self.assertRaises(InsufficientStock):
            await self.state.checkout()
        self.assertEqual(self.state.cart.checkout_items(), [(p.pid, 5)])

        self.state.cart.clear()
        with self.assertRaises(EmptyCart):
            await self.state.checkout()

    async def test_cart_survives_logout(self):
        p = await self.make_product()
        self.state.cart.add(p, 1)
        self.state.logout()
        self.assertIsNone(self.state.actor)
        self.assertFalse(self.state.cart)

        self.state.login(await self.accounts.get_user(self.alice.uid))
        self.assertEqual(self.state.cart.checkout_items(), [(p.pid, 1)])
