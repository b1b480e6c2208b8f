import unittest
from datetime import date, datetime, timezone

from factories import ADDRESS, NOW, make_expense, make_order

from storefront.db.models import Expense, Order, OrderItem, ShippingAddress
from storefront.utils.errors import ValidationError


class OrderModelTestCase(unittest.TestCase):
    def test_round_trip_through_document(self):
        order = make_order()
        doc = order.to_doc()
        self.assertEqual(doc["customerName"], "Asha Rao")
        self.assertEqual(doc["items"][0]["price"], "250.0")
        self.assertEqual(doc["createdAt"], "2026-10-17T12:00:00.000Z")
        self.assertEqual(Order.from_doc(doc), order)

    def test_total_must_equal_subtotal_plus_shipping(self):
        order = make_order()
        doc = order.to_doc()
        doc["totalAmount"] = 999
        with self.assertRaises(ValidationError) as ctx:
            Order.from_doc(doc)
        self.assertEqual(ctx.exception.field, "total_amount")

    def test_status_is_normalised_and_checked(self):
        doc = make_order().to_doc()
        doc["status"] = "Shipped"
        self.assertEqual(Order.from_doc(doc).status, "shipped")
        doc["status"] = "lost"
        with self.assertRaises(ValidationError):
            Order.from_doc(doc)

    def test_browser_timestamps_and_numeric_ids(self):
        doc = make_order().to_doc()
        doc["id"] = 17
        doc["userId"] = 3
        doc["updatedAt"] = "2026-10-15T08:30:00Z"
        order = Order.from_doc(doc)
        self.assertEqual(order.id, "17")
        self.assertEqual(order.user_id, "3")
        self.assertEqual(order.updated_at, datetime(2026, 10, 15, 8, 30, tzinfo=timezone.utc))

    def test_item_validation(self):
        with self.assertRaises(ValidationError):
            OrderItem("p1", "Turmeric", 0, "120")
        with self.assertRaises(ValidationError):
            OrderItem("p1", "Turmeric", 1, "abc")
        item = OrderItem.from_doc(
            {"productId": 5, "productName": "Turmeric", "quantity": 3, "unitPrice": "120.50"}
        )
        self.assertEqual(item.product_id, "5")
        self.assertEqual(str(item.line_total), "361.50")

    def test_address_validation(self):
        with self.assertRaises(ValidationError) as ctx:
            ShippingAddress("", "Pune", "MH", "411001")
        self.assertEqual(ctx.exception.field, "addressLine1")
        with self.assertRaises(ValidationError) as ctx:
            ShippingAddress("12 MG Road", "Pune", "MH", "4110")
        self.assertEqual(ctx.exception.field, "pincode")
        self.assertEqual(ShippingAddress.from_doc(ADDRESS.to_doc()), ADDRESS)


class ExpenseModelTestCase(unittest.TestCase):
    def test_first_failing_field_is_reported(self):
        cases = [
            (dict(title="  "), "title"),
            (dict(amount=0), "amount"),
            (dict(amount=-5), "amount"),
            (dict(category=""), "category"),
            (dict(category="bribes"), "category"),
            (dict(date=""), "date"),
            (dict(payment_method=""), "paymentMethod"),
            (dict(vendor=" "), "vendor"),
            (dict(title="", amount=0, vendor=""), "title"),
            (dict(amount=0, vendor=""), "amount"),
        ]
        for overrides, field in cases:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValidationError) as ctx:
                    make_expense(**overrides)
                self.assertEqual(ctx.exception.field, field)

    def test_document_mapping(self):
        expense = make_expense(created_at=NOW, updated_at=NOW)
        doc = expense.to_doc()
        self.assertEqual(doc["date"], "2026-10-15")
        self.assertEqual(doc["paymentMethod"], "Cash")
        again = Expense.from_doc(doc)
        self.assertEqual(again.date, date(2026, 10, 15))
        self.assertEqual(again, expense)
        self.assertEqual(again.category_label, "Packaging")
