# provide dataclass models and their JSON document mapping

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from storefront.utils.errors import ValidationError
from storefront.utils.pure import (
    format_timestamp,
    parse_date,
    parse_timestamp,
    to_decimal,
)

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
# statuses that can still go overdue
ACTIVE_STATUSES = ("pending", "processing", "shipped")
TERMINAL_STATUSES = ("delivered", "cancelled")

CASH_ON_DELIVERY = "Cash on Delivery"

EXPENSE_CATEGORIES = {
    "raw_materials": "Raw Materials",
    "packaging": "Packaging",
    "utilities": "Utilities",
    "salaries": "Salaries & Wages",
    "logistics": "Logistics & Transport",
    "marketing": "Marketing & Advertising",
    "rent": "Rent & Lease",
    "maintenance": "Maintenance & Repairs",
    "office": "Office Supplies",
    "insurance": "Insurance",
    "taxes": "Taxes & Fees",
    "other": "Other",
}

PAYMENT_METHODS = (
    "Cash",
    "Bank Transfer",
    "Credit Card",
    "Debit Card",
    "UPI",
    "Online",
    "Cheque",
)


def _text(value) -> str:
    return "" if value is None else str(value)


def _opt_id(value) -> Optional[str]:
    return None if value is None else str(value)


def _opt_ts(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("timestamp", f"Invalid timestamp {value!r}") from None


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # decimal string, snapshot of the price at checkout
    weight: str = ""

    def __post_init__(self):
        if (
            not isinstance(self.quantity, int)
            or isinstance(self.quantity, bool)
            or self.quantity <= 0
        ):
            raise ValidationError("quantity", "Quantity must be a positive integer")
        price = to_decimal(self.unit_price)
        if price is None or price < 0:
            raise ValidationError("unitPrice", f"Invalid unit price {self.unit_price!r}")
        object.__setattr__(self, "product_id", _text(self.product_id))
        object.__setattr__(self, "unit_price", _text(self.unit_price).strip())

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity

    def to_doc(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": self.unit_price,
            "weight": self.weight,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=doc.get("productId"),
            product_name=_text(doc.get("productName")),
            quantity=doc.get("quantity"),
            unit_price=doc.get("price", doc.get("unitPrice")),
            weight=_text(doc.get("weight")),
        )


@dataclass(frozen=True)
class ShippingAddress:
    address_line1: str
    city: str
    state: str
    pincode: str
    address_line2: str = ""

    def __post_init__(self):
        if not _text(self.address_line1).strip():
            raise ValidationError("addressLine1", "Address line 1 is required")
        if len(_text(self.pincode).strip()) < 6:
            raise ValidationError("pincode", "Please enter a valid pincode")

    def to_doc(self) -> Dict[str, Any]:
        return {
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "ShippingAddress":
        return cls(
            address_line1=_text(doc.get("addressLine1")),
            address_line2=_text(doc.get("addressLine2")),
            city=_text(doc.get("city")),
            state=_text(doc.get("state")),
            pincode=_text(doc.get("pincode")),
        )


@dataclass(frozen=True)
class CustomerContact:
    """Name/email/phone copied onto the order at checkout time."""

    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class Order:
    user_id: Optional[str]
    contact: CustomerContact
    items: Tuple[OrderItem, ...]
    subtotal: float
    shipping_charges: float
    total_amount: float
    profit: float
    shipping_address: ShippingAddress
    payment_method: str = CASH_ON_DELIVERY
    status: str = "pending"
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "id", _opt_id(self.id))
        object.__setattr__(self, "created_at", _opt_ts(self.created_at))
        object.__setattr__(self, "updated_at", _opt_ts(self.updated_at))
        object.__setattr__(self, "user_id", _opt_id(self.user_id))
        status = _text(self.status).strip().lower()
        if status not in ORDER_STATUSES:
            raise ValidationError("status", f"Unknown order status '{self.status}'")
        object.__setattr__(self, "status", status)
        for name in ("subtotal", "shipping_charges", "total_amount", "profit"):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ValidationError(name, f"{name} must be a non-negative number")
        if abs(self.total_amount - (self.subtotal + self.shipping_charges)) > 0.01:
            raise ValidationError(
                "total_amount",
                f"totalAmount {self.total_amount} != subtotal {self.subtotal}"
                f" + shipping {self.shipping_charges}",
            )

    @property
    def is_cancelled(self) -> bool:
        return self.status == "cancelled"

    def to_doc(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "userId": self.user_id,
            "customerName": self.contact.name,
            "customerEmail": self.contact.email,
            "customerPhone": self.contact.phone,
            "items": [item.to_doc() for item in self.items],
            "subtotal": self.subtotal,
            "shippingCharges": self.shipping_charges,
            "totalAmount": self.total_amount,
            "profit": self.profit,
            "paymentMethod": self.payment_method,
            "status": self.status,
            "shippingAddress": self.shipping_address.to_doc(),
        }
        if self.id is not None:
            doc["id"] = self.id
        if self.created_at is not None:
            doc["createdAt"] = format_timestamp(self.created_at)
        if self.updated_at is not None:
            doc["updatedAt"] = format_timestamp(self.updated_at)
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Order":
        return cls(
            id=doc.get("id"),
            user_id=doc.get("userId"),
            contact=CustomerContact(
                name=_text(doc.get("customerName")),
                email=_text(doc.get("customerEmail")),
                phone=_text(doc.get("customerPhone")),
            ),
            items=[OrderItem.from_doc(item) for item in doc.get("items") or []],
            subtotal=doc.get("subtotal", 0),
            shipping_charges=doc.get("shippingCharges", 0),
            total_amount=doc.get("totalAmount", 0),
            profit=doc.get("profit", 0),
            payment_method=_text(doc.get("paymentMethod")) or CASH_ON_DELIVERY,
            status=doc.get("status", "pending"),
            shipping_address=ShippingAddress.from_doc(doc.get("shippingAddress") or {}),
            created_at=_opt_ts(doc.get("createdAt")),
            updated_at=_opt_ts(doc.get("updatedAt")),
        )


@dataclass(frozen=True)
class Expense:
    """
    An operating cost recorded by an operator.

    Validation runs in field order (title, amount, category, date,
    payment method, vendor) and stops at the first failure, so the
    ValidationError always names the first offending field.
    """

    title: str
    amount: float
    category: str
    date: date
    payment_method: str
    vendor: str
    description: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not _text(self.title).strip():
            raise ValidationError("title", "Please enter expense title")
        if not _is_number(self.amount) or self.amount <= 0:
            raise ValidationError("amount", "Please enter a valid amount")
        if not self.category:
            raise ValidationError("category", "Please select a category")
        if self.category not in EXPENSE_CATEGORIES:
            raise ValidationError("category", f"Unknown category '{self.category}'")
        if not self.date:
            raise ValidationError("date", "Please select a date")
        try:
            object.__setattr__(self, "date", parse_date(self.date))
        except ValueError:
            raise ValidationError("date", f"Invalid date {self.date!r}") from None
        if not _text(self.payment_method).strip():
            raise ValidationError("paymentMethod", "Please select payment method")
        if not _text(self.vendor).strip():
            raise ValidationError("vendor", "Please enter vendor name")
        object.__setattr__(self, "id", _opt_id(self.id))
        object.__setattr__(self, "created_at", _opt_ts(self.created_at))
        object.__setattr__(self, "updated_at", _opt_ts(self.updated_at))

    @property
    def category_label(self) -> str:
        return EXPENSE_CATEGORIES.get(self.category, self.category)

    def to_doc(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "title": self.title,
            "amount": self.amount,
            "category": self.category,
            "description": self.description,
            "date": self.date.isoformat(),
            "paymentMethod": self.payment_method,
            "vendor": self.vendor,
        }
        if self.id is not None:
            doc["id"] = self.id
        if self.created_at is not None:
            doc["createdAt"] = format_timestamp(self.created_at)
        if self.updated_at is not None:
            doc["updatedAt"] = format_timestamp(self.updated_at)
        return doc

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Expense":
        return cls(
            id=doc.get("id"),
            title=_text(doc.get("title")),
            amount=doc.get("amount"),
            category=_text(doc.get("category")),
            description=_text(doc.get("description")),
            date=doc.get("date"),
            payment_method=_text(doc.get("paymentMethod")),
            vendor=_text(doc.get("vendor")),
            created_at=_opt_ts(doc.get("createdAt")),
            updated_at=_opt_ts(doc.get("updatedAt")),
        )


# ---------------------------
# Derived, never persisted
# ---------------------------


@dataclass
class StatsSnapshot:
    total_revenue: float = 0
    total_profit: float = 0
    total_shipping: float = 0
    total_expenses: float = 0
    net_profit: float = 0
    total_orders: int = 0
    status_counts: Dict[str, int] = field(
        default_factory=lambda: {s: 0 for s in ORDER_STATUSES}
    )
    overdue_counts: Dict[str, int] = field(
        default_factory=lambda: {s: 0 for s in ACTIVE_STATUSES}
    )
    today_revenue: float = 0
    today_profit: float = 0
    today_shipping: float = 0
    today_orders: int = 0


@dataclass
class ExpenseStats:
    total_expenses: float = 0
    monthly_expenses: float = 0
    today_expenses: float = 0
    average_expense: float = 0
    highest_expense: float = 0
    expense_count: int = 0


@dataclass(frozen=True)
class RevenuePoint:
    label: str
    revenue: float


@dataclass
class RevenueReport:
    points: List[RevenuePoint] = field(default_factory=list)
    total_revenue: float = 0
    average_revenue: float = 0
    highest_revenue: float = 0
    period: str = ""

    @property
    def labels(self) -> List[str]:
        return [p.label for p in self.points]

    @property
    def values(self) -> List[float]:
        return [p.revenue for p in self.points]
