"""
Order status state machine and overdue classification.

Every status change in application code goes through ``transition``; the
store itself will accept any full-record overwrite.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from storefront.db.crud import OrderStore
from storefront.db.models import ACTIVE_STATUSES, ORDER_STATUSES, Order
from storefront.utils import config
from storefront.utils.errors import InvalidTransitionError, ValidationError
from storefront.utils.logger import get_logger
from storefront.utils.pure import as_aware, utcnow

_logger = get_logger(__name__)

TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending": ("processing", "cancelled"),
    "processing": ("shipped", "cancelled"),
    "shipped": ("delivered", "cancelled"),
    "delivered": (),
    "cancelled": (),
}

OVERDUE_AFTER = timedelta(hours=config.OVERDUE_AFTER_HOURS)


def allowed_targets(status: str) -> Tuple[str, ...]:
    return TRANSITIONS.get(status.lower(), ())


def is_overdue(order: Order, now: Optional[datetime] = None) -> bool:
    """Active order whose last update is strictly older than the threshold."""
    if order.status not in ACTIVE_STATUSES or order.updated_at is None:
        return False
    now = as_aware(now) if now else utcnow()
    return now - order.updated_at > OVERDUE_AFTER


def transition(
    order: Order,
    target: str,
    now: Optional[datetime] = None,
    strict: bool = True,
) -> Order:
    """
    Return a copy of ``order`` moved to ``target`` with a fresh updatedAt.

    Moving to the current status only refreshes updatedAt. With
    ``strict=False`` any known status is accepted, which mirrors how the
    storefront admin behaved before transitions were enforced.
    """
    target = (target or "").strip().lower()
    if target not in ORDER_STATUSES:
        raise ValidationError("status", f"Unknown order status '{target}'")
    now = as_aware(now) if now else utcnow()
    if target != order.status and strict and target not in allowed_targets(order.status):
        raise InvalidTransitionError(order.id, order.status, target)
    return replace(order, status=target, updated_at=now)


async def change_status(
    store: OrderStore,
    order_id: str,
    target: str,
    now: Optional[datetime] = None,
    strict: bool = True,
) -> Order:
    """Read, transition and write back, guarded by the read updatedAt."""
    current = await store.get(order_id)
    moved = transition(current, target, now=now, strict=strict)
    saved = await store.update(order_id, moved, expected_updated_at=current.updated_at)
    _logger.info(f"Order {order_id}: {current.status} -> {saved.status}")
    return saved
