import os
import tempfile
import unittest
from dataclasses import replace
from datetime import timedelta

from factories import ADDRESS, NOW, aged, make_expense, make_order

from storefront.db import crud
from storefront.db.database import SqliteDocumentStore
from storefront.db.models import CASH_ON_DELIVERY, CustomerContact
from storefront.services.checkout import place_order
from storefront.services.dashboard import Dashboard
from storefront.services.favorites import Favorites
from storefront.services.lifecycle import change_status
from storefront.services.query import OrderQuery
from storefront.utils.errors import (
    ConflictError,
    InvalidTransitionError,
    TransportError,
    ValidationError,
)
from storefront.utils.state import Cart, Session, StaticIdentity, User

CONTACT = CustomerContact("Asha Rao", "asha@example.com", "9876543210")


class FlakyStore:
    """Wraps a store and fails the chosen operations with TransportError."""

    def __init__(self, inner, failing=()):
        self.inner = inner
        self.failing = set(failing)

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if name not in self.failing:
            return attr

        async def fail(*_args, **_kwargs):
            raise TransportError(f"{name} is down")

        return fail


class CartTestCase(unittest.TestCase):
    def test_add_merges_and_quantity_zero_removes(self):
        cart = Cart()
        cart.add(1, "Turmeric", "120.50", "200g")
        cart.add("1", "Turmeric", "120.50", "200g")
        cart.add(2, "Cumin", "80")
        self.assertEqual(cart.count(), 3)
        self.assertEqual(cart.subtotal(), 321)
        cart.update_quantity(2, 0)
        self.assertEqual([line.product_id for line in cart.lines], ["1"])
        cart.remove(1)
        self.assertTrue(cart.is_empty())


class ServiceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = SqliteDocumentStore(os.path.join(self.temp_dir.name, "test.sqlite"))
        self.orders = crud.OrderStore(self.store)
        self.profiles = crud.ProfileStore(self.store)
        self.user = User("u1", "Asha Rao", "asha@example.com", "9876543210")

    async def asyncSetUp(self):
        await self.store.create(crud.USERS, {"id": "u1", "name": "Asha Rao"})

    def tearDown(self):
        self.temp_dir.cleanup()

    def session(self, user=None, lines=((750, 1),)) -> Session:
        cart = Cart()
        for i, (price, qty) in enumerate(lines):
            cart.add(f"p{i}", f"Product {i}", str(price), "250g")
            cart.update_quantity(f"p{i}", qty)
        return Session(StaticIdentity(user or self.user), cart)


class CheckoutTestCase(ServiceTestCase):
    # ---------- Placing orders ----------

    async def test_place_order_prices_and_saves(self):
        session = self.session(lines=((250, 2), (125, 2)))
        order = await place_order(session, CONTACT, ADDRESS, self.orders, self.profiles, now=NOW)

        self.assertEqual(order.subtotal, 750)
        self.assertEqual(order.shipping_charges, 38)
        self.assertEqual(order.total_amount, 788)
        self.assertEqual(order.profit, 225)
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.payment_method, CASH_ON_DELIVERY)
        self.assertEqual(order.user_id, "u1")
        self.assertEqual(order.created_at, NOW)
        self.assertEqual([i.unit_price for i in order.items], ["250", "125"])
        self.assertTrue(session.cart.is_empty())
        self.assertEqual(await self.orders.get(order.id), order)

    async def test_address_is_remembered(self):
        await place_order(self.session(), CONTACT, ADDRESS, self.orders, self.profiles, now=NOW)
        self.assertEqual(await self.profiles.get_shipping_address("u1"), ADDRESS)

    async def test_guest_address_is_not_written(self):
        guest = User("g1", "Guest", "guest@example.com", is_guest=True)
        order = await place_order(
            self.session(user=guest), CONTACT, ADDRESS, self.orders, self.profiles, now=NOW
        )
        self.assertEqual(order.user_id, "g1")
        self.assertIsNone(await self.profiles.get_shipping_address("u1"))

    async def test_failed_address_write_keeps_order(self):
        profiles = crud.ProfileStore(FlakyStore(self.store, failing={"update"}))
        session = self.session()
        order = await place_order(session, CONTACT, ADDRESS, self.orders, profiles, now=NOW)
        self.assertIsNotNone(order.id)
        self.assertTrue(session.cart.is_empty())
        self.assertEqual(len(await self.orders.list()), 1)

    async def test_validation_failures_write_nothing(self):
        cases = [
            (replace(CONTACT, name=" "), "fullName"),
            (replace(CONTACT, email="asha.example.com"), "email"),
            (replace(CONTACT, phone="12345"), "phone"),
        ]
        for contact, field in cases:
            with self.subTest(field=field):
                session = self.session()
                with self.assertRaises(ValidationError) as ctx:
                    await place_order(session, contact, ADDRESS, self.orders, self.profiles)
                self.assertEqual(ctx.exception.field, field)
                self.assertFalse(session.cart.is_empty())

        with self.assertRaises(ValidationError) as ctx:
            await place_order(
                self.session(), CONTACT, replace(ADDRESS, city=""), self.orders, self.profiles
            )
        self.assertEqual(ctx.exception.field, "city")

        with self.assertRaises(ValidationError) as ctx:
            await place_order(self.session(lines=()), CONTACT, ADDRESS, self.orders)
        self.assertEqual(ctx.exception.field, "items")

        self.assertEqual(await self.orders.list(), [])


class FavoritesTestCase(ServiceTestCase):
    # ---------- Favorites ----------

    async def test_toggle_adds_and_removes(self):
        favorites = Favorites(self.session(), self.profiles)
        self.assertEqual(await favorites.load(), [])
        self.assertTrue(await favorites.toggle(5))
        self.assertTrue(favorites.contains("5"))
        self.assertTrue(await favorites.toggle("5"))
        self.assertFalse(favorites.contains(5))
        self.assertEqual(await self.profiles.get_favorites("u1"), [])

    async def test_failed_write_rolls_back(self):
        await self.profiles.save_favorites("u1", ["1"])
        flaky = crud.ProfileStore(FlakyStore(self.store, failing={"update"}))
        favorites = Favorites(self.session(), flaky)
        await favorites.load()
        self.assertFalse(await favorites.toggle("2"))
        self.assertEqual(favorites.items, ["1"])

    async def test_guests_have_no_favorites(self):
        guest = User("g1", "Guest", "", is_guest=True)
        favorites = Favorites(self.session(user=guest), self.profiles)
        self.assertEqual(await favorites.load(), [])
        self.assertFalse(await favorites.toggle("1"))


class StatusChangeTestCase(ServiceTestCase):
    # ---------- Status changes ----------

    async def test_change_status_moves_forward(self):
        saved = await self.orders.create(make_order(), now=aged(days=1))
        moved = await change_status(self.orders, saved.id, "processing", now=NOW)
        self.assertEqual(moved.status, "processing")
        self.assertEqual((await self.orders.get(saved.id)).updated_at, NOW)

    async def test_illegal_change_writes_nothing(self):
        saved = await self.orders.create(make_order(status="delivered"), now=aged(days=1))
        with self.assertRaises(InvalidTransitionError):
            await change_status(self.orders, saved.id, "pending", now=NOW)
        self.assertEqual(await self.orders.get(saved.id), saved)

    async def test_concurrent_edit_is_detected(self):
        saved = await self.orders.create(make_order(), now=aged(days=1))
        read_by_admin_a = await self.orders.get(saved.id)
        await change_status(self.orders, saved.id, "cancelled", now=NOW)
        later = replace(read_by_admin_a, status="processing", updated_at=NOW + timedelta(seconds=1))
        with self.assertRaises(ConflictError):
            await self.orders.update(
                saved.id, later, expected_updated_at=read_by_admin_a.updated_at
            )
        self.assertEqual((await self.orders.get(saved.id)).status, "cancelled")


class DashboardTestCase(ServiceTestCase):
    # ---------- Dashboard ----------

    async def test_refresh_and_views(self):
        await self.orders.create(make_order(subtotal=1000, shipping=0, profit=300), now=aged(days=3))
        await self.orders.create(make_order(status="delivered"), now=aged(days=1))
        ledger = crud.ExpenseLedger(self.store)
        await ledger.create(make_expense(amount=100))

        dashboard = Dashboard(self.orders, ledger)
        stats = await dashboard.refresh(NOW)
        self.assertEqual(stats.total_orders, 2)
        self.assertEqual(stats.total_revenue, 1525)
        self.assertEqual(stats.net_profit, 350)
        self.assertEqual(stats.overdue_counts["pending"], 1)

        stalled = dashboard.table(OrderQuery(overdue_filter="pending"), NOW)
        self.assertEqual(len(stalled), 1)
        self.assertEqual(dashboard.revenue_report("month", NOW).total_revenue, 1525)
        self.assertEqual(dashboard.revenue_report("product").total_revenue, 1500)

    async def test_malformed_stored_order_does_not_break_refresh(self):
        await self.orders.create(make_order(), now=aged(days=1))
        dashboard = Dashboard(self.orders, crud.ExpenseLedger(self.store))
        await dashboard.refresh(NOW)

        await self.store.create(crud.ORDERS, {"totalAmount": 250, "status": "pending"})
        stats = await dashboard.refresh(NOW)
        self.assertEqual(stats.total_orders, 1)
        self.assertEqual(stats.total_revenue, 525)

    async def test_failed_refresh_keeps_previous_snapshot(self):
        await self.orders.create(make_order(), now=aged(days=1))
        dashboard = Dashboard(self.orders, crud.ExpenseLedger(self.store))
        first = await dashboard.refresh(NOW)

        dashboard.orders_store = crud.OrderStore(FlakyStore(self.store, failing={"list"}))
        again = await dashboard.refresh(NOW)
        self.assertIs(again, first)
        self.assertEqual(len(dashboard.orders), 1)
