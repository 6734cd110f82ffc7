import asyncio
import unittest
from decimal import Decimal

from store_case import StoreTestCase

from db.database import Database
from db.models import MAX_INTEGER, OrderStatus
from services.errors import (
    Conflict,
    EmptyCart,
    Forbidden,
    InsufficientStock,
    InvalidInput,
    InvalidStatus,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    Unauthenticated,
)
from services.orders import LIFECYCLE, OrderService, next_statuses, parse_status


class CreateOrderTestCase(StoreTestCase):
    async def test_checkout_prices_from_store_and_decrements_stock(self):
        p = await self.make_product(stock=5, price="10.00")

        order = await self.orders.create_order(self.alice, [(p.pid, 3)])

        self.assertEqual(order.total, Decimal("30.00"))
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.payment_method, "COD")
        self.assertEqual(order.uid, self.alice.uid)
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].price, Decimal("10.00"))
        self.assertEqual(order.items[0].qty, 3)
        self.assertEqual(await self.stock_of(p.pid), 2)

    async def test_total_is_sum_of_lines(self):
        a = await self.make_product(stock=10, price="4999.00")
        b = await self.make_product(stock=10, price="0.10")
        c = await self.make_product(stock=10, price="89.99")

        order = await self.orders.create_order(
            self.alice, [(a.pid, 1), (b.pid, 3), (c.pid, 2)]
        )

        self.assertEqual(order.total, Decimal("5179.28"))
        self.assertEqual(sum(i.line_total for i in order.items), order.total)
        self.assertEqual([i.line_no for i in order.items], [1, 2, 3])

    async def test_quantity_equal_to_stock_succeeds(self):
        p = await self.make_product(stock=4)
        await self.orders.create_order(self.alice, [(p.pid, 4)])
        self.assertEqual(await self.stock_of(p.pid), 0)

    async def test_quantity_above_stock_fails_without_mutation(self):
        p = await self.make_product(stock=4)

        with self.assertRaises(InsufficientStock) as ctx:
            await self.orders.create_order(self.alice, [(p.pid, 5)])

        self.assertEqual(ctx.exception.details["pid"], p.pid)
        self.assertEqual(ctx.exception.details["requested"], 5)
        self.assertEqual(ctx.exception.details["available"], 4)
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(await self.stock_of(p.pid), 4)
        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertEqual(await self.count_rows("order_items"), 0)

    async def test_failed_line_rolls_back_earlier_lines(self):
        plenty = await self.make_product(stock=10)
        scarce = await self.make_product(stock=1)

        with self.assertRaises(InsufficientStock):
            await self.orders.create_order(
                self.alice, [(plenty.pid, 3), (scarce.pid, 2)]
            )

        self.assertEqual(await self.stock_of(plenty.pid), 10)
        self.assertEqual(await self.stock_of(scarce.pid), 1)
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_empty_cart_is_rejected(self):
        for entries in ([], None):
            with self.assertRaises(EmptyCart) as ctx:
                await self.orders.create_order(self.alice, entries)
            self.assertIsInstance(ctx.exception, InvalidInput)
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_bad_quantities_are_rejected(self):
        p = await self.make_product(stock=5)
        for qty in (0, -1, True, 1.5, "2"):
            with self.assertRaises(InvalidInput):
                await self.orders.create_order(self.alice, [(p.pid, qty)])
        self.assertEqual(await self.stock_of(p.pid), 5)
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_quantities_beyond_integer_range(self):
        p = await self.make_product(stock=5)
        with self.assertRaises(InvalidInput):
            await self.orders.create_order(self.alice, [(p.pid, MAX_INTEGER + 1)])
        with self.assertRaises(InsufficientStock) as ctx:
            await self.orders.create_order(self.alice, [(p.pid, MAX_INTEGER)])
        self.assertEqual(ctx.exception.details["requested"], MAX_INTEGER)
        self.assertEqual(await self.stock_of(p.pid), 5)
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_total_too_large_to_store(self):
        p = await self.make_product(stock=MAX_INTEGER, price="9" * 25 + ".00")
        with self.assertRaises(InvalidInput):
            await self.orders.create_order(self.alice, [(p.pid, 1000)])
        self.assertEqual(await self.stock_of(p.pid), MAX_INTEGER)
        self.assertEqual(await self.count_rows("orders"), 0)

    async def test_missing_or_inactive_product(self):
        inactive = await self.make_product(stock=5, is_active=False)
        with self.assertRaises(ProductNotFound):
            await self.orders.create_order(self.alice, [(9999, 1)])
        with self.assertRaises(ProductNotFound):
            await self.orders.create_order(self.alice, [(inactive.pid, 1)])
        self.assertEqual(await self.stock_of(inactive.pid), 5)

    async def test_anonymous_checkout(self):
        p = await self.make_product(stock=5)
        with self.assertRaises(Unauthenticated):
            await self.orders.create_order(None, [(p.pid, 1)])

    async def test_administrator_may_check_out(self):
        p = await self.make_product(stock=5)
        order = await self.orders.create_order(self.admin, [(p.pid, 1)])
        self.assertEqual(order.uid, self.admin.uid)

    async def test_duplicate_product_lines_stay_separate(self):
        p = await self.make_product(stock=5, price="2.00")
        order = await self.orders.create_order(self.alice, [(p.pid, 2), (p.pid, 3)])
        self.assertEqual([i.qty for i in order.items], [2, 3])
        self.assertEqual(order.total, Decimal("10.00"))
        self.assertEqual(await self.stock_of(p.pid), 0)

    async def test_duplicate_lines_count_against_the_same_stock(self):
        p = await self.make_product(stock=4)
        with self.assertRaises(InsufficientStock):
            await self.orders.create_order(self.alice, [(p.pid, 2), (p.pid, 3)])
        self.assertEqual(await self.stock_of(p.pid), 4)

    async def test_order_keeps_its_prices_after_product_changes(self):
        p = await self.make_product(stock=5, price="10.00", name="Original")
        order = await self.orders.create_order(self.alice, [(p.pid, 2)])

        await self.catalog.update_product(
            self.admin, p.pid, price=Decimal("99.00"), name="Renamed"
        )
        again = await self.orders.get_order(self.alice, order.ono)
        self.assertEqual(again.total, Decimal("20.00"))
        self.assertEqual(again.items[0].price, Decimal("10.00"))
        self.assertEqual(again.items[0].product_name, "Original")

        await self.catalog.delete_product(self.admin, p.pid)
        again = await self.orders.get_order(self.alice, order.ono)
        self.assertEqual(again.total, Decimal("20.00"))


class ConcurrentCheckoutTestCase(StoreTestCase):
    async def test_two_checkouts_never_oversell(self):
        p = await self.make_product(stock=5)

        results = await asyncio.gather(
            self.orders.create_order(self.alice, [(p.pid, 3)]),
            self.orders.create_order(self.bob, [(p.pid, 3)]),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        self.assertEqual(len(placed), 1)
        self.assertEqual(len(failed), 1)
        self.assertIsInstance(failed[0], (InsufficientStock, Conflict))
        self.assertEqual(await self.stock_of(p.pid), 2)
        self.assertEqual(await self.count_rows("orders"), 1)

    async def test_many_checkouts_stop_at_zero(self):
        p = await self.make_product(stock=7)
        buyers = [self.alice, self.bob] * 5

        results = await asyncio.gather(
            *(self.orders.create_order(b, [(p.pid, 1)]) for b in buyers),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        self.assertEqual(len(placed), 7)
        self.assertEqual(await self.stock_of(p.pid), 0)
        self.assertEqual(await self.count_rows("orders"), 7)

    async def test_lock_timeout_is_a_retryable_conflict(self):
        p = await self.make_product(stock=5)
        impatient = OrderService(Database(self.db_path, busy_timeout=0.1))

        async with self.db.transaction():
            # another writer holds the store
            with self.assertRaises(Conflict) as ctx:
                await impatient.create_order(self.alice, [(p.pid, 1)])

        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(await self.stock_of(p.pid), 5)
        self.assertEqual(await self.count_rows("orders"), 0)

        # the retry goes through once the lock is released
        await impatient.create_order(self.alice, [(p.pid, 1)])
        self.assertEqual(await self.stock_of(p.pid), 4)


class OrderStatusTestCase(StoreTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.product = await self.make_product(stock=10, price="5.00")
        self.order = await self.orders.create_order(
            self.alice, [(self.product.pid, 2)]
        )

    async def test_administrator_may_jump_to_any_status(self):
        order = await self.orders.set_order_status(
            self.admin, self.order.ono, OrderStatus.DELIVERED
        )
        self.assertEqual(order.status, OrderStatus.DELIVERED)

        # and back again, terminal states are not enforced by default
        order = await self.orders.set_order_status(self.admin, self.order.ono, "pending")
        self.assertEqual(order.status, OrderStatus.PENDING)

    async def test_customer_cannot_ship_own_order(self):
        with self.assertRaises(Forbidden):
            await self.orders.set_order_status(
                self.alice, self.order.ono, OrderStatus.SHIPPED
            )
        order = await self.orders.get_order(self.alice, self.order.ono)
        self.assertEqual(order.status, OrderStatus.PENDING)

    async def test_customer_confirms_own_pending_order(self):
        order = await self.orders.confirm_order(self.alice, self.order.ono)
        self.assertEqual(order.status, OrderStatus.CONFIRMED)

        # confirming again is a no-op
        order = await self.orders.confirm_order(self.alice, self.order.ono)
        self.assertEqual(order.status, OrderStatus.CONFIRMED)

    async def test_customer_cannot_confirm_after_shipping(self):
        await self.orders.set_order_status(self.admin, self.order.ono, "SHIPPED")
        with self.assertRaises(Forbidden):
            await self.orders.confirm_order(self.alice, self.order.ono)

    async def test_customer_cannot_touch_others_orders(self):
        with self.assertRaises(Forbidden):
            await self.orders.confirm_order(self.bob, self.order.ono)
        with self.assertRaises(Forbidden):
            await self.orders.get_order(self.bob, self.order.ono)

    async def test_same_status_is_a_no_op(self):
        order = await self.orders.set_order_status(
            self.admin, self.order.ono, OrderStatus.PENDING
        )
        self.assertEqual(order, self.order)

    async def test_customer_may_repeat_current_status(self):
        order = await self.orders.set_order_status(
            self.alice, self.order.ono, OrderStatus.PENDING
        )
        self.assertEqual(order, self.order)

        await self.orders.set_order_status(self.admin, self.order.ono, "SHIPPED")
        order = await self.orders.set_order_status(self.alice, self.order.ono, "SHIPPED")
        self.assertEqual(order.status, OrderStatus.SHIPPED)

        with self.assertRaises(Forbidden):
            await self.orders.set_order_status(self.bob, self.order.ono, "SHIPPED")

    async def test_unknown_status_and_order(self):
        with self.assertRaises(InvalidStatus):
            await self.orders.set_order_status(self.admin, self.order.ono, "LOST")
        with self.assertRaises(InvalidStatus):
            await self.orders.set_order_status(self.admin, self.order.ono, None)
        with self.assertRaises(OrderNotFound):
            await self.orders.set_order_status(self.admin, 9999, "SHIPPED")
        with self.assertRaises(Unauthenticated):
            await self.orders.set_order_status(None, self.order.ono, "SHIPPED")

    async def test_cancel_does_not_restock_by_default(self):
        await self.orders.set_order_status(self.admin, self.order.ono, "CANCELLED")
        self.assertEqual(await self.stock_of(self.product.pid), 8)

    async def test_restock_on_cancel(self):
        orders = OrderService(self.db, restock_on_cancel=True)

        await orders.set_order_status(self.admin, self.order.ono, "CANCELLED")
        self.assertEqual(await self.stock_of(self.product.pid), 10)

        # reviving takes the units again
        await orders.set_order_status(self.admin, self.order.ono, "CONFIRMED")
        self.assertEqual(await self.stock_of(self.product.pid), 8)

    async def test_revive_fails_when_stock_is_gone(self):
        orders = OrderService(self.db, restock_on_cancel=True)
        await orders.set_order_status(self.admin, self.order.ono, "CANCELLED")
        await self.orders.create_order(self.bob, [(self.product.pid, 10)])

        with self.assertRaises(InsufficientStock):
            await orders.set_order_status(self.admin, self.order.ono, "PENDING")
        order = await self.orders.get_order(self.admin, self.order.ono)
        self.assertEqual(order.status, OrderStatus.CANCELLED)
        self.assertTrue(order.restocked)

    async def test_revive_only_takes_back_released_units(self):
        # cancelled while restocking was off: the units never came back
        await self.orders.set_order_status(self.admin, self.order.ono, "CANCELLED")
        self.assertEqual(await self.stock_of(self.product.pid), 8)

        orders = OrderService(self.db, restock_on_cancel=True)
        order = await orders.set_order_status(self.admin, self.order.ono, "CONFIRMED")
        self.assertFalse(order.restocked)
        self.assertEqual(await self.stock_of(self.product.pid), 8)

    async def test_revive_after_disabling_restock(self):
        restocking = OrderService(self.db, restock_on_cancel=True)
        order = await restocking.set_order_status(self.admin, self.order.ono, "CANCELLED")
        self.assertTrue(order.restocked)
        self.assertEqual(await self.stock_of(self.product.pid), 10)

        order = await self.orders.set_order_status(self.admin, self.order.ono, "PENDING")
        self.assertFalse(order.restocked)
        self.assertEqual(await self.stock_of(self.product.pid), 8)

    async def test_strict_transitions(self):
        orders = OrderService(self.db, strict_admin_transitions=True)

        with self.assertRaises(InvalidTransition):
            await orders.set_order_status(self.admin, self.order.ono, "DELIVERED")

        for status in ("CONFIRMED", "SHIPPED", "DELIVERED"):
            order = await orders.set_order_status(self.admin, self.order.ono, status)
        self.assertEqual(order.status, OrderStatus.DELIVERED)

        with self.assertRaises(InvalidTransition):
            await orders.set_order_status(self.admin, self.order.ono, "CANCELLED")


class OrderReadsTestCase(StoreTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        p = await self.make_product(stock=10)
        self.first = await self.orders.create_order(self.alice, [(p.pid, 1)])
        self.second = await self.orders.create_order(self.alice, [(p.pid, 2)])
        self.bobs = await self.orders.create_order(self.bob, [(p.pid, 3)])

    async def test_list_user_orders_newest_first(self):
        mine = await self.orders.list_user_orders(self.alice)
        self.assertEqual([o.ono for o in mine], [self.second.ono, self.first.ono])
        with self.assertRaises(Unauthenticated):
            await self.orders.list_user_orders(None)

    async def test_list_all_orders_is_admin_only(self):
        with self.assertRaises(Forbidden):
            await self.orders.list_all_orders(self.alice)

        everything = await self.orders.list_all_orders(self.admin)
        self.assertEqual(len(everything), 3)
        self.assertEqual(
            {o.owner_email for o in everything},
            {"alice@example.com", "bob@example.com"},
        )

    async def test_list_all_orders_by_status(self):
        await self.orders.set_order_status(self.admin, self.bobs.ono, "SHIPPED")
        shipped = await self.orders.list_all_orders(self.admin, "shipped")
        self.assertEqual([o.ono for o in shipped], [self.bobs.ono])

    async def test_get_order_visibility(self):
        self.assertEqual(
            (await self.orders.get_order(self.admin, self.first.ono)).ono,
            self.first.ono,
        )
        with self.assertRaises(Unauthenticated):
            await self.orders.get_order(None, self.first.ono)
        with self.assertRaises(OrderNotFound):
            await self.orders.get_order(self.alice, 9999)


class LifecycleTestCase(unittest.TestCase):
    def test_parse_status(self):
        self.assertEqual(parse_status(" shipped "), OrderStatus.SHIPPED)
        self.assertIs(parse_status(OrderStatus.PENDING), OrderStatus.PENDING)
        with self.assertRaises(InvalidStatus):
            parse_status("DECLINED")

    def test_terminal_statuses_have_no_successors(self):
        for status in OrderStatus:
            self.assertEqual(status.is_terminal, not next_statuses(status))
        self.assertIn(OrderStatus.CANCELLED, LIFECYCLE[OrderStatus.PENDING])
