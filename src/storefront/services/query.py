"""
Admin order table: search, status filter, overdue filter and sorting over an
in-memory order list.

Precedence: an overdue filter replaces search and status filtering entirely;
only without it do search and status filter apply (combined with AND).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Literal, Optional

from storefront.db.models import ACTIVE_STATUSES, Order
from storefront.services.lifecycle import is_overdue
from storefront.utils.errors import ValidationError
from storefront.utils.pure import utcnow

SortDirection = Literal["asc", "desc"]

SORT_KEYS: Dict[str, Callable[[Order], object]] = {
    "id": lambda o: o.id or "",
    "customerName": lambda o: o.contact.name.lower(),
    "createdAt": lambda o: o.created_at.timestamp() if o.created_at else float("-inf"),
    "totalAmount": lambda o: o.total_amount,
    "status": lambda o: o.status.lower(),
}


@dataclass(frozen=True)
class SortState:
    """Current table sort; clicking a column header calls ``toggle``."""

    column: str = "createdAt"
    direction: SortDirection = "desc"

    def toggle(self, column: str) -> "SortState":
        if column not in SORT_KEYS:
            raise ValidationError("sortColumn", f"Cannot sort by '{column}'")
        if column == self.column:
            return SortState(column, "asc" if self.direction == "desc" else "desc")
        return SortState(column, "desc")


@dataclass(frozen=True)
class OrderQuery:
    search_term: str = ""
    status_filter: str = "all"
    overdue_filter: Optional[str] = None
    sort_column: str = "createdAt"
    sort_direction: SortDirection = "desc"

    @property
    def sort(self) -> SortState:
        return SortState(self.sort_column, self.sort_direction)


def matches_search(order: Order, term: str) -> bool:
    term = term.lower()
    return (
        term in (order.id or "").lower()
        or term in order.contact.name.lower()
        or term in order.contact.email.lower()
        or term in order.contact.phone.lower()
    )


def filter_orders(
    orders: List[Order], query: OrderQuery, now: Optional[datetime] = None
) -> List[Order]:
    if query.overdue_filter:
        status = query.overdue_filter.lower()
        if status not in ACTIVE_STATUSES:
            raise ValidationError(
                "overdueFilter", f"Orders in '{query.overdue_filter}' cannot be overdue"
            )
        now = now or utcnow()
        return [o for o in orders if o.status == status and is_overdue(o, now)]

    result = list(orders)
    term = (query.search_term or "").strip()
    if term:
        result = [o for o in result if matches_search(o, term)]
    status_filter = (query.status_filter or "all").lower()
    if status_filter != "all":
        result = [o for o in result if o.status == status_filter]
    return result


def sort_orders(
    orders: List[Order], column: str, direction: SortDirection = "desc"
) -> List[Order]:
    """Stable sort: equal keys keep their relative order in both directions."""
    key = SORT_KEYS.get(column)
    if key is None:
        raise ValidationError("sortColumn", f"Cannot sort by '{column}'")
    return sorted(orders, key=key, reverse=direction == "desc")


def apply(
    orders: List[Order], query: OrderQuery, now: Optional[datetime] = None
) -> List[Order]:
    filtered = filter_orders(orders, query, now)
    return sort_orders(filtered, query.sort_column, query.sort_direction)
