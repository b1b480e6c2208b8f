# src/storefront/db/crud.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from dateutil.relativedelta import relativedelta

from storefront.db.models import EXPENSE_CATEGORIES, Expense, Order, ShippingAddress
from storefront.db.port import DocumentStore, SortOrder
from storefront.utils.errors import ConflictError, ValidationError
from storefront.utils.logger import get_logger
from storefront.utils.pure import format_timestamp, local_date, utcnow

_logger = get_logger(__name__)

ORDERS = "orders"
EXPENSES = "expenses"
USERS = "users"

DATE_RANGES = ("all", "today", "week", "month", "year")


def _decode_all(collection: str, docs: List[dict], from_doc: Callable) -> list:
    records = []
    for doc in docs:
        try:
            records.append(from_doc(doc))
        except ValidationError as e:
            _logger.warning(
                f"Skipping malformed {collection} record {doc.get('id')}: {e.message}"
            )
    return records


# ---------------------------
# Orders
# ---------------------------


class OrderStore:
    """
    Create/read/update access to orders. Orders are an audit trail, so there
    is deliberately no delete.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self._write_lock = asyncio.Lock()

    async def create(self, order: Order, now: Optional[datetime] = None) -> Order:
        """Persist a new order; the store assigns the id, createdAt == updatedAt == now."""
        now = now or utcnow()
        doc = replace(order, id=None, created_at=now, updated_at=now).to_doc()
        created = await self.store.create(ORDERS, doc)
        saved = Order.from_doc(created)
        _logger.info(
            f"Order {saved.id} created for user {saved.user_id}: "
            f"{len(saved.items)} items, total {saved.total_amount}"
        )
        return saved

    async def get(self, order_id: str) -> Order:
        return Order.from_doc(await self.store.get(ORDERS, order_id))

    async def update(
        self,
        order_id: str,
        order: Order,
        expected_updated_at: Optional[datetime] = None,
    ) -> Order:
        """
        Overwrite the whole record.

        When ``expected_updated_at`` is given it acts as a concurrency token:
        if the stored order was updated since, ConflictError is raised and
        nothing is written.
        """
        async with self._write_lock:
            if expected_updated_at is not None:
                current = await self.get(order_id)
                expected = format_timestamp(expected_updated_at)
                actual = (
                    format_timestamp(current.updated_at) if current.updated_at else "never"
                )
                if actual != expected:
                    raise ConflictError(order_id, expected, actual)
            doc = replace(order, id=str(order_id)).to_doc()
            stored = await self.store.update(ORDERS, str(order_id), doc)
        return Order.from_doc(stored)

    async def list(
        self,
        user_id: Optional[str] = None,
        sort: Optional[str] = "createdAt",
        order: SortOrder = "desc",
    ) -> List[Order]:
        """Orders newest first; stored documents that fail validation are skipped."""
        where = {"userId": str(user_id)} if user_id is not None else None
        docs = await self.store.list(ORDERS, where=where, sort=sort, order=order)
        return _decode_all(ORDERS, docs, Order.from_doc)


# ---------------------------
# Expenses
# ---------------------------


@dataclass(frozen=True)
class ExpenseFilter:
    search: str = ""
    category: str = "all"
    date_range: str = "all"


def _range_start(date_range: str, today: date) -> Optional[date]:
    if date_range == "week":
        return today - timedelta(days=7)
    if date_range == "month":
        return today - relativedelta(months=1)
    if date_range == "year":
        return today - relativedelta(years=1)
    return None


def filter_expenses(
    expenses: List[Expense], flt: ExpenseFilter, today: date
) -> List[Expense]:
    """
    Apply free-text, category and date-range filters, keeping input order.
    All three combine with AND; "all" disables category/date filtering.
    """
    if flt.date_range not in DATE_RANGES:
        raise ValidationError("dateRange", f"Unknown date range '{flt.date_range}'")
    result = list(expenses)

    term = (flt.search or "").strip().lower()
    if term:
        result = [
            e
            for e in result
            if term in e.title.lower()
            or term in e.vendor.lower()
            or term in e.description.lower()
        ]

    if flt.category and flt.category != "all":
        result = [e for e in result if e.category == flt.category]

    if flt.date_range == "today":
        result = [e for e in result if e.date == today]
    else:
        start = _range_start(flt.date_range, today)
        if start is not None:
            result = [e for e in result if e.date >= start]
    return result


class ExpenseLedger:
    """CRUD over expense records plus filtered listing."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create(self, expense: Expense, now: Optional[datetime] = None) -> Expense:
        now = now or utcnow()
        doc = replace(expense, id=None, created_at=now, updated_at=now).to_doc()
        saved = Expense.from_doc(await self.store.create(EXPENSES, doc))
        _logger.info(f"Expense {saved.id} recorded: {saved.title} ({saved.amount})")
        return saved

    async def get(self, expense_id: str) -> Expense:
        return Expense.from_doc(await self.store.get(EXPENSES, expense_id))

    async def update(
        self, expense_id: str, expense: Expense, now: Optional[datetime] = None
    ) -> Expense:
        """Overwrite an expense, keeping its original createdAt."""
        now = now or utcnow()
        current = await self.get(expense_id)
        doc = replace(
            expense,
            id=str(expense_id),
            created_at=current.created_at or now,
            updated_at=now,
        ).to_doc()
        saved = Expense.from_doc(await self.store.update(EXPENSES, str(expense_id), doc))
        _logger.info(f"Expense {saved.id} updated")
        return saved

    async def delete(self, expense_id: str) -> None:
        await self.store.delete(EXPENSES, str(expense_id))
        _logger.info(f"Expense {expense_id} deleted")

    async def list(
        self, flt: Optional[ExpenseFilter] = None, now: Optional[datetime] = None
    ) -> List[Expense]:
        """Expenses newest first, optionally filtered relative to ``now``."""
        docs = await self.store.list(EXPENSES, sort="date", order="desc")
        expenses = _decode_all(EXPENSES, docs, Expense.from_doc)
        if flt is None:
            return expenses
        if flt.category not in ("", "all") and flt.category not in EXPENSE_CATEGORIES:
            raise ValidationError("category", f"Unknown category '{flt.category}'")
        return filter_expenses(expenses, flt, local_date(now or utcnow()))


# ---------------------------
# Customer profile fields
# ---------------------------


class ProfileStore:
    """
    Reads and writes the two user-record fields this package owns:
    ``shippingAddress`` and ``favorites``. Everything else in the user
    record is passed through untouched.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_shipping_address(self, user_id: str) -> Optional[ShippingAddress]:
        user = await self.store.get(USERS, str(user_id))
        doc = user.get("shippingAddress") or {}
        if not doc.get("addressLine1"):
            return None
        try:
            return ShippingAddress.from_doc(doc)
        except ValidationError:
            _logger.warning(f"Ignoring malformed saved address for user {user_id}")
            return None

    async def save_shipping_address(self, user_id: str, address: ShippingAddress) -> None:
        user = await self.store.get(USERS, str(user_id))
        user["shippingAddress"] = address.to_doc()
        await self.store.update(USERS, str(user_id), user)

    async def get_favorites(self, user_id: str) -> List[str]:
        user = await self.store.get(USERS, str(user_id))
        return [str(pid) for pid in user.get("favorites") or []]

    async def save_favorites(self, user_id: str, favorites: List[str]) -> None:
        user = await self.store.get(USERS, str(user_id))
        user["favorites"] = list(favorites)
        await self.store.update(USERS, str(user_id), user)
