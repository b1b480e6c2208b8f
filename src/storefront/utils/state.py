from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Literal, Optional, Protocol

from storefront.db.models import OrderItem
from storefront.utils.pure import as_number


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    phone: str = ""
    role: Literal["customer", "admin"] = "customer"
    is_guest: bool = False


class Identity(Protocol):
    """Whoever owns login state; the core only asks who is signed in."""

    def current_user(self) -> Optional[User]: ...


@dataclass
class StaticIdentity:
    """Identity with a fixed user, for scripts and tests."""

    user: Optional[User] = None

    def current_user(self) -> Optional[User]:
        return self.user


@dataclass
class CartLine:
    product_id: str
    name: str
    price: str  # decimal string as listed in the catalog
    weight: str = ""
    quantity: int = 1

    def to_order_item(self) -> OrderItem:
        return OrderItem(
            product_id=self.product_id,
            product_name=self.name,
            quantity=self.quantity,
            unit_price=self.price,
            weight=self.weight,
        )


@dataclass
class Cart:
    lines: List[CartLine] = field(default_factory=list)

    def _find(self, product_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.product_id == str(product_id)), None)

    def add(self, product_id, name: str, price: str, weight: str = "") -> None:
        """Add one unit, merging with an existing line for the same product."""
        line = self._find(product_id)
        if line:
            line.quantity += 1
        else:
            self.lines.append(CartLine(str(product_id), name, str(price), weight))

    def remove(self, product_id) -> None:
        self.lines = [line for line in self.lines if line.product_id != str(product_id)]

    def update_quantity(self, product_id, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        line = self._find(product_id)
        if line:
            line.quantity = quantity

    def clear(self) -> None:
        self.lines = []

    def subtotal(self):
        total = sum((Decimal(line.price) * line.quantity for line in self.lines), Decimal("0"))
        return as_number(total)

    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines


@dataclass
class Session:
    """
    Explicit per-shopper state handed to the checkout flow.

    Fields:
      - identity: collaborator answering ``current_user()``
      - cart: the shopper's in-memory cart
    """

    identity: Identity
    cart: Cart = field(default_factory=Cart)

    def current_user(self) -> Optional[User]:
        return self.identity.current_user()

    @property
    def is_admin(self) -> bool:
        user = self.current_user()
        return user is not None and user.role == "admin"
