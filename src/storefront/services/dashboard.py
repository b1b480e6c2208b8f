import asyncio
from datetime import datetime
from typing import List, Optional

from storefront.db.crud import ExpenseLedger, OrderStore
from storefront.db.models import Expense, Order, RevenueReport, StatsSnapshot
from storefront.services import analytics, query, revenue
from storefront.utils.errors import TransportError
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)


class Dashboard:
    """
    Admin view state: the last fetched orders/expenses and the snapshot
    derived from them. A failed refresh keeps whatever was shown before.
    """

    def __init__(self, orders: OrderStore, ledger: ExpenseLedger):
        self.orders_store = orders
        self.ledger = ledger
        self.orders: List[Order] = []
        self.expenses: List[Expense] = []
        self.snapshot: Optional[StatsSnapshot] = None

    async def refresh(self, now: Optional[datetime] = None) -> Optional[StatsSnapshot]:
        try:
            orders, expenses = await asyncio.gather(
                self.orders_store.list(sort="createdAt", order="desc"),
                self.ledger.list(),
            )
        except TransportError as e:
            _logger.error(f"Dashboard refresh failed, keeping previous data: {e}")
            return self.snapshot

        self.orders, self.expenses = orders, expenses
        self.snapshot = analytics.summarize(orders, expenses, now)
        _logger.debug(
            f"Dashboard refreshed: {len(orders)} orders, {len(expenses)} expenses"
        )
        return self.snapshot

    def table(self, order_query: query.OrderQuery, now: Optional[datetime] = None) -> List[Order]:
        return query.apply(self.orders, order_query, now)

    def revenue_report(self, granularity: str = "month", now: Optional[datetime] = None) -> RevenueReport:
        if granularity == "product":
            return revenue.revenue_by_product(self.orders)
        return revenue.revenue_by_period(self.orders, granularity, now)
