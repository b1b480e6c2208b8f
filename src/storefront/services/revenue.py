"""
Revenue series for the admin charts, either per calendar bucket or per
product.
"""

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from storefront.db.models import Order, RevenuePoint, RevenueReport
from storefront.utils.errors import ValidationError
from storefront.utils.pure import (
    day_label,
    local_datetime,
    month_label,
    utcnow,
)

GRANULARITIES = ("day", "week", "month", "year")
TOP_PRODUCTS = 10

LOOKBACK = {
    "day": relativedelta(days=7),
    "week": relativedelta(days=84),
    "month": relativedelta(months=12),
    "year": relativedelta(years=5),
}


def bucket_for(moment: datetime, granularity: str) -> Tuple[date, str]:
    """Return (bucket start, label) for a local timestamp. Weeks start on Sunday."""
    day = moment.date()
    if granularity == "day":
        return day, day_label(day)
    if granularity == "week":
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return start, f"Week of {day_label(start)}"
    if granularity == "month":
        start = day.replace(day=1)
        return start, month_label(start)
    if granularity == "year":
        return date(day.year, 1, 1), str(day.year)
    raise ValidationError("granularity", f"Unknown granularity '{granularity}'")


def _report(points: List[RevenuePoint], total: float, period: str) -> RevenueReport:
    return RevenueReport(
        points=points,
        total_revenue=total,
        average_revenue=total / len(points) if points else 0,
        highest_revenue=max((p.revenue for p in points), default=0),
        period=period,
    )


def revenue_by_period(
    orders: Iterable[Order], granularity: str, now: Optional[datetime] = None
) -> RevenueReport:
    """
    Sum totalAmount of non-cancelled orders per bucket inside the lookback
    window (7 days, 12 weeks, 12 months or 5 years). Buckets come out in
    chronological order.
    """
    if granularity not in GRANULARITIES:
        raise ValidationError("granularity", f"Unknown granularity '{granularity}'")
    now_local = local_datetime(now or utcnow())
    window_start = now_local - LOOKBACK[granularity]

    buckets: Dict[date, List] = {}
    total = 0
    for order in orders:
        if order.is_cancelled or order.created_at is None:
            continue
        created = local_datetime(order.created_at)
        if created < window_start:
            continue
        start, label = bucket_for(created, granularity)
        bucket = buckets.setdefault(start, [label, 0])
        bucket[1] += order.total_amount
        total += order.total_amount

    points = [RevenuePoint(*buckets[start]) for start in sorted(buckets)]
    return _report(points, total, granularity)


def revenue_by_product(orders: Iterable[Order]) -> RevenueReport:
    """
    Item revenue (unit price x quantity) per product name over the whole
    order history, top ten by revenue. The total covers every product, the
    average only the returned ones.
    """
    per_product: Dict[str, float] = {}
    total = 0
    for order in orders:
        if order.is_cancelled:
            continue
        for item in order.items:
            revenue = float(item.line_total)
            per_product[item.product_name] = per_product.get(item.product_name, 0) + revenue
            total += revenue

    ranked = sorted(per_product.items(), key=lambda kv: kv[1], reverse=True)
    points = [RevenuePoint(name, revenue) for name, revenue in ranked[:TOP_PRODUCTS]]
    return _report(points, total, "all time")
