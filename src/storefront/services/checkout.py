from datetime import datetime
from typing import Optional

from storefront.db.crud import OrderStore, ProfileStore
from storefront.db.models import CASH_ON_DELIVERY, CustomerContact, Order, ShippingAddress
from storefront.services.pricing import price_cart
from storefront.utils.errors import TransportError, ValidationError
from storefront.utils.logger import get_logger
from storefront.utils.state import Session

_logger = get_logger(__name__)


def validate_contact(contact: CustomerContact) -> None:
    if not contact.name.strip():
        raise ValidationError("fullName", "Please enter your full name")
    if not contact.email.strip() or "@" not in contact.email:
        raise ValidationError("email", "Please enter a valid email")
    if not contact.phone.strip() or len(contact.phone.strip()) < 10:
        raise ValidationError("phone", "Please enter a valid phone number")


def validate_address(address: ShippingAddress) -> None:
    # line 1 and pincode are already enforced by ShippingAddress itself
    if not address.city.strip():
        raise ValidationError("city", "Please enter city")
    if not address.state.strip():
        raise ValidationError("state", "Please enter state")


def build_order(session: Session, contact: CustomerContact, address: ShippingAddress) -> Order:
    """Price the session cart into a pending, unsaved order."""
    validate_contact(contact)
    validate_address(address)
    if session.cart.is_empty():
        raise ValidationError("items", "Your cart is empty")

    user = session.current_user()
    quote = price_cart(session.cart.subtotal())
    return Order(
        user_id=user.id if user else None,
        contact=contact,
        items=[line.to_order_item() for line in session.cart.lines],
        subtotal=quote.subtotal,
        shipping_charges=quote.shipping_charges,
        total_amount=quote.total_amount,
        profit=quote.profit_estimate,
        payment_method=CASH_ON_DELIVERY,
        status="pending",
        shipping_address=address,
    )


async def place_order(
    session: Session,
    contact: CustomerContact,
    address: ShippingAddress,
    orders: OrderStore,
    profiles: Optional[ProfileStore] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Turn the session cart into a saved pending order.

    Nothing is written when validation fails. After the order is stored the
    address is remembered on the user's profile (not for guests); failing
    to remember it is logged and does not affect the order. The cart is
    emptied once the order exists.
    """
    order = build_order(session, contact, address)
    saved = await orders.create(order, now=now)

    user = session.current_user()
    if profiles is not None and user is not None and not user.is_guest:
        try:
            await profiles.save_shipping_address(user.id, address)
        except TransportError as e:
            _logger.error(f"Order {saved.id} placed but address not saved for {user.id}: {e}")

    session.cart.clear()
    return saved
