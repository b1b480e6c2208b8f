from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.utils.pure import Number, as_number, round_half_up, to_decimal

FREE_SHIPPING_FROM = Decimal("1000")
PERCENT_SHIPPING_FROM = Decimal("500")
PERCENT_SHIPPING_RATE = Decimal("0.05")
FLAT_SHIPPING = 50
PROFIT_MARGIN = Decimal("0.30")


@dataclass(frozen=True)
class Quote:
    subtotal: Number
    shipping_charges: int
    total_amount: Number
    profit_estimate: int


def shipping_for(subtotal: Number) -> int:
    """Free from 1000, 5% (rounded) from 500, flat 50 below that."""
    amount = Decimal(str(subtotal))
    if amount >= FREE_SHIPPING_FROM:
        return 0
    if amount >= PERCENT_SHIPPING_FROM:
        return round_half_up(amount * PERCENT_SHIPPING_RATE)
    return FLAT_SHIPPING


def price_cart(subtotal: Number) -> Quote:
    amount = to_decimal(subtotal)
    shipping = shipping_for(amount)
    return Quote(
        subtotal=as_number(amount),
        shipping_charges=shipping,
        total_amount=as_number(amount + shipping),
        profit_estimate=round_half_up(amount * PROFIT_MARGIN),
    )


def shipping_hint(subtotal: Number) -> Optional[Number]:
    """How much more to spend to reach the next cheaper shipping tier, if any."""
    amount = Decimal(str(subtotal))
    if amount < PERCENT_SHIPPING_FROM:
        return as_number(PERCENT_SHIPPING_FROM - amount)
    if amount < FREE_SHIPPING_FROM:
        return as_number(FREE_SHIPPING_FROM - amount)
    return None
