from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from storefront.db.models import (
    ACTIVE_STATUSES,
    EXPENSE_CATEGORIES,
    Expense,
    ExpenseStats,
    Order,
    StatsSnapshot,
)
from storefront.services.lifecycle import is_overdue
from storefront.utils.pure import as_aware, local_date, month_label, utcnow


def summarize(
    orders: Iterable[Order],
    expenses: Iterable[Expense],
    now: Optional[datetime] = None,
) -> StatsSnapshot:
    """
    Reduce orders and expenses into the dashboard snapshot.

    Cancelled orders are counted by status (and for today's order count) but
    never contribute money. "Today" is the local calendar day of ``now``.
    """
    now = as_aware(now) if now else utcnow()
    today = local_date(now)
    stats = StatsSnapshot()

    for order in orders:
        stats.total_orders += 1
        if not order.is_cancelled:
            stats.total_revenue += order.total_amount
            stats.total_profit += order.profit
            stats.total_shipping += order.shipping_charges

        stats.status_counts[order.status] = stats.status_counts.get(order.status, 0) + 1
        if order.status in ACTIVE_STATUSES and is_overdue(order, now):
            stats.overdue_counts[order.status] += 1

        if order.created_at is not None and local_date(order.created_at) == today:
            stats.today_orders += 1
            if not order.is_cancelled:
                stats.today_revenue += order.total_amount
                stats.today_profit += order.profit
                stats.today_shipping += order.shipping_charges

    for expense in expenses:
        stats.total_expenses += expense.amount

    stats.net_profit = stats.total_profit - stats.total_expenses
    return stats


# ---------------------------
# Expense roll-ups
# ---------------------------


def summarize_expenses(
    expenses: List[Expense], now: Optional[datetime] = None
) -> ExpenseStats:
    today = local_date(now or utcnow())
    month_start = today.replace(day=1)
    stats = ExpenseStats(expense_count=len(expenses))
    for expense in expenses:
        stats.total_expenses += expense.amount
        stats.highest_expense = max(stats.highest_expense, expense.amount)
        if expense.date == today:
            stats.today_expenses += expense.amount
        if expense.date >= month_start:
            stats.monthly_expenses += expense.amount
    if expenses:
        stats.average_expense = stats.total_expenses / len(expenses)
    return stats


def expenses_by_category(expenses: List[Expense]) -> List[Tuple[str, float]]:
    """(category label, total) pairs, largest first."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0) + expense.amount
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [(EXPENSE_CATEGORIES.get(cat, cat), amount) for cat, amount in ranked]


def expenses_by_month(expenses: List[Expense]) -> List[Tuple[str, float]]:
    """("Mon YYYY", total) pairs in calendar order."""
    totals: Dict[Tuple[int, int], float] = {}
    for expense in expenses:
        key = (expense.date.year, expense.date.month)
        totals[key] = totals.get(key, 0) + expense.amount
    return [
        (month_label(date(year, month, 1)), amount)
        for (year, month), amount in sorted(totals.items())
    ]
