from decimal import Decimal

from store_case import StoreTestCase

from db.models import MAX_INTEGER
from services.errors import Forbidden, InvalidInput, ProductNotFound, Unauthenticated


class CatalogTestCase(StoreTestCase):
    async def test_create_and_browse(self):
        p = await self.catalog.create_product(
            self.admin,
            name="  ساعة ذكية ",
            description="تتبع اللياقة",
            price="599",
            category="إلكترونيات",
            stock=40,
        )
        self.assertEqual(p.name, "ساعة ذكية")
        self.assertEqual(p.price, Decimal("599.00"))
        self.assertTrue(p.is_active)

        # anonymous browsing is public
        listed = await self.catalog.list_products(None)
        self.assertEqual([x.pid for x in listed], [p.pid])
        self.assertEqual((await self.catalog.get_product(None, p.pid)).stock, 40)
        self.assertEqual(await self.catalog.categories(), ["إلكترونيات"])

    async def test_inactive_products_are_hidden_from_customers(self):
        p = await self.make_product(is_active=False)

        self.assertEqual(await self.catalog.list_products(self.alice), [])
        with self.assertRaises(ProductNotFound):
            await self.catalog.get_product(self.alice, p.pid)
        with self.assertRaises(Forbidden):
            await self.catalog.list_products(self.alice, include_inactive=True)

        self.assertEqual((await self.catalog.get_product(self.admin, p.pid)).pid, p.pid)
        everything = await self.catalog.list_products(self.admin, include_inactive=True)
        self.assertEqual([x.pid for x in everything], [p.pid])

    async def test_filters(self):
        lamp = await self.make_product(name="مصباح", category="أثاث", description="Desk lamp")
        await self.make_product(name="هاتف", category="إلكترونيات")

        by_cat = await self.catalog.list_products(None, category="أثاث")
        self.assertEqual([x.pid for x in by_cat], [lamp.pid])
        by_query = await self.catalog.list_products(None, query="LAMP")
        self.assertEqual([x.pid for x in by_query], [lamp.pid])

    async def test_management_is_admin_only(self):
        p = await self.make_product()
        with self.assertRaises(Forbidden):
            await self.catalog.create_product(self.alice, name="x", price="1", stock=1)
        with self.assertRaises(Forbidden):
            await self.catalog.update_product(self.alice, p.pid, stock=99)
        with self.assertRaises(Forbidden):
            await self.catalog.delete_product(self.alice, p.pid)
        with self.assertRaises(Unauthenticated):
            await self.catalog.delete_product(None, p.pid)
        self.assertEqual(await self.stock_of(p.pid), 10)

    async def test_partial_update(self):
        p = await self.make_product(stock=3, price="5.00", name="قديم")
        updated = await self.catalog.update_product(self.admin, p.pid, stock=7)
        self.assertEqual(updated.stock, 7)
        self.assertEqual(updated.price, Decimal("5.00"))
        self.assertEqual(updated.name, "قديم")

        updated = await self.catalog.update_product(
            self.admin, p.pid, is_active=False, price="6.5"
        )
        self.assertFalse(updated.is_active)
        self.assertEqual(updated.price, Decimal("6.50"))

        with self.assertRaises(ProductNotFound):
            await self.catalog.update_product(self.admin, 9999, stock=1)

    async def test_validation(self):
        bad_fields = [
            dict(name="", price="1", stock=1),
            dict(name="x", price="-1", stock=1),
            dict(name="x", price="abc", stock=1),
            dict(name="x", price="1", stock=-2),
            dict(name="x", price="1", stock=1.5),
            dict(name="x", price=True, stock=1),
        ]
        for fields in bad_fields:
            with self.assertRaises(InvalidInput, msg=str(fields)):
                await self.catalog.create_product(self.admin, **fields)
        self.assertEqual(await self.count_rows("products"), 0)

    async def test_delete(self):
        p = await self.make_product()
        await self.catalog.delete_product(self.admin, p.pid)
        with self.assertRaises(ProductNotFound):
            await self.catalog.get_product(self.admin, p.pid)
        with self.assertRaises(ProductNotFound):
            await self.catalog.delete_product(self.admin, p.pid)

    async def test_stock_beyond_integer_range(self):
        p = await self.make_product()
        with self.assertRaises(InvalidInput):
            await self.catalog.update_product(self.admin, p.pid, stock=MAX_INTEGER + 1)
        with self.assertRaises(InvalidInput):
            await self.catalog.create_product(
                self.admin, name="x", price="1", stock=str(MAX_INTEGER + 1)
            )
        updated = await self.catalog.update_product(self.admin, p.pid, stock=MAX_INTEGER)
        self.assertEqual(updated.stock, MAX_INTEGER)
