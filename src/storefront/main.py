import asyncio
import sys

from storefront.db.crud import ExpenseLedger, OrderStore
from storefront.services.dashboard import Dashboard
from storefront.services.query import OrderQuery
from storefront.utils import config
from storefront.utils.errors import ValidationError
from storefront.utils.logger import get_logger

_logger = get_logger("main")


async def main(granularity: str = "month") -> int:
    store = config.open_store()
    try:
        dashboard = Dashboard(OrderStore(store), ExpenseLedger(store))
        stats = await dashboard.refresh()
        if stats is None:
            _logger.error("No data could be loaded")
            return 1

        _logger.info(
            f"Orders: {stats.total_orders} | revenue {stats.total_revenue:,.0f}"
            f" | profit {stats.total_profit:,.0f} | shipping {stats.total_shipping:,.0f}"
        )
        _logger.info(
            f"Expenses {stats.total_expenses:,.0f} | net profit {stats.net_profit:,.0f}"
        )
        _logger.info(
            f"Today: {stats.today_orders} orders, revenue {stats.today_revenue:,.0f}"
        )
        for status, count in stats.status_counts.items():
            overdue = stats.overdue_counts.get(status)
            suffix = f" ({overdue} overdue)" if overdue else ""
            _logger.info(f"  {status:<10} {count}{suffix}")

        try:
            report = dashboard.revenue_report(granularity)
        except ValidationError as e:
            _logger.error(e.message)
            return 2
        _logger.info(
            f"Revenue by {granularity}: total {report.total_revenue:,.0f},"
            f" average {report.average_revenue:,.0f}, best {report.highest_revenue:,.0f}"
        )
        for point in report.points:
            _logger.info(f"  {point.label:<16} {point.revenue:,.0f}")

        for status in ("pending", "processing", "shipped"):
            stalled = dashboard.table(OrderQuery(overdue_filter=status))
            if stalled:
                ids = ", ".join(o.id for o in stalled[:10])
                _logger.warning(f"{len(stalled)} overdue {status} orders: {ids}")
        return 0
    finally:
        await store.close()


def run() -> None:
    granularity = sys.argv[1] if len(sys.argv) > 1 else "month"
    sys.exit(asyncio.run(main(granularity)))


if __name__ == "__main__":
    run()
