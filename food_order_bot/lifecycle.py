"""
Order Lifecycle Engine
======================

Enforces the legal moves of an order's fulfillment status and payment
status. Used by the owner command interpreter (WhatsApp) and by the
dashboard routes.

Status and payment are independent axes:

    status:          pending -> confirmed -> ready -> delivered
                     pending -> rejected
                     (dashboard may also set preparing / cancelled)
    payment_status:  pending -> paid (-> refunded from the dashboard)

Rules:
------
- ACCEPT / REJECT need status pending.
- READY needs status confirmed.
- PAID needs status ready and payment not already paid.
- DELIVERED needs status ready. A COD order is marked paid on delivery
  (cash collected at handoff); any other order must already be paid.
- The dashboard may set delivered only on an order already paid, COD
  included.
- No path, dashboard included, reaches delivered with payment unpaid.
- The actor must own the order's restaurant. actor=None is the dashboard
  super admin and skips the ownership check.

Authorization is checked before preconditions. Every rejected move raises
a LifecycleError subclass and leaves the order untouched.

Side Effects:
-------------
The engine sends nothing. A successful move returns a TransitionResult
whose events the caller hands to services.notifications.Notifier.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from .conversation.messages import format_money
from .models import (
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    User,
    UserRole,
)
from .services.notifications import NotificationEvent
from .services.order import get_order

logger = logging.getLogger(__name__)

__all__ = [
    "OrderAction",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "LifecycleError",
    "OrderNotFoundError",
    "NotAuthorizedError",
    "InvalidTransitionError",
    "NotificationEvent",
    "TransitionResult",
    "apply_action",
    "set_order_status",
    "set_payment_status",
]


class OrderAction(str, Enum):
    """Operator actions on an order."""
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    READY = "READY"
    PAID = "PAID"
    DELIVERED = "DELIVERED"


# =============================================================================
# Errors
# =============================================================================

class LifecycleError(Exception):
    """Base class for rejected order moves. str(e) is safe to show to the operator."""

    def __init__(self, order_id: int, message: str):
        super().__init__(message)
        self.order_id = order_id


class OrderNotFoundError(LifecycleError):
    def __init__(self, order_id: int):
        super().__init__(order_id, f"Order #{order_id} not found.")


class NotAuthorizedError(LifecycleError):
    def __init__(self, order_id: int):
        super().__init__(order_id, f"You are not authorized to manage Order #{order_id}.")


class InvalidTransitionError(LifecycleError):
    pass


@dataclass
class TransitionResult:
    """Outcome of a successful move."""
    order: Order
    previous_status: str
    previous_payment_status: str
    events: List[NotificationEvent] = field(default_factory=list)
    payment_auto_confirmed: bool = False


# =============================================================================
# Shared checks
# =============================================================================

def _load_order(db: Session, order_id: int) -> Order:
    order = get_order(db, order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


def _authorize(order: Order, actor: Optional[User]) -> None:
    if actor is None or actor.role == UserRole.SUPER_ADMIN.value:
        return
    restaurant = order.restaurant
    if restaurant is None or restaurant.owner_id != actor.id:
        logger.warning(
            "User %d tried to manage order %d of restaurant %s",
            actor.id, order.id, order.restaurant_id,
        )
        raise NotAuthorizedError(order.id)


def _require_status(order: Order, expected: OrderStatus, message: str) -> None:
    if order.status != expected.value:
        raise InvalidTransitionError(order.id, message)


def _require_paid(order: Order, message: str) -> None:
    """The one place that guards delivery on payment."""
    if order.payment_status != PaymentStatus.PAID.value:
        raise InvalidTransitionError(order.id, message)


def _ensure_paid_for_delivery(order: Order, message: str) -> bool:
    """
    Operator delivery: cash is collected at handoff, so an unpaid COD order
    is marked paid here. Returns True when that happened.
    """
    if order.payment_method == PaymentMethod.COD.value and order.payment_status != PaymentStatus.PAID.value:
        order.payment_status = PaymentStatus.PAID.value
        return True
    _require_paid(order, message)
    return False


def _customer_event(order: Order, type_: str, title: str, message: str, text: str,
                    status: Optional[str] = "pending") -> NotificationEvent:
    customer = order.user
    return NotificationEvent(
        type=type_,
        title=title,
        message=message,
        order_id=order.id,
        user_id=order.user_id,
        phone=customer.phone if customer else None,
        text=text,
        status=status,
    )


def _restaurant_name(order: Order) -> str:
    return order.restaurant.name if order.restaurant else "Restaurant"


# =============================================================================
# Operator actions
# =============================================================================

def _accept(order: Order) -> NotificationEvent:
    if order.status != OrderStatus.PENDING.value:
        raise InvalidTransitionError(order.id, f"Order #{order.id} has already been {order.status}.")
    order.status = OrderStatus.CONFIRMED.value

    name = _restaurant_name(order)
    text = "🎉 Great news! Your order has been confirmed!\n\n"
    text += f"📋 Order #{order.id}\n"
    text += f"🏪 {name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "⏱️ Your order is being prepared.\n"
    text += "We'll notify you when it's ready!"
    return _customer_event(
        order, "order_confirmed", "Order Confirmed",
        f"Your order #{order.id} has been confirmed by {name}", text,
    )


def _reject(order: Order) -> NotificationEvent:
    if order.status != OrderStatus.PENDING.value:
        raise InvalidTransitionError(order.id, f"Order #{order.id} has already been {order.status}.")
    order.status = OrderStatus.REJECTED.value

    name = _restaurant_name(order)
    text = "😔 Sorry, your order has been rejected.\n\n"
    text += f"📋 Order #{order.id}\n"
    text += f"🏪 {name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "Possible reasons:\n"
    text += "• Restaurant is too busy\n"
    text += "• Some items are unavailable\n"
    text += "• Delivery area issue\n\n"
    text += "Please try ordering again or contact the restaurant directly."
    return _customer_event(
        order, "order_rejected", "Order Rejected",
        f"Your order #{order.id} has been rejected by {name}", text,
    )


def _ready(order: Order) -> NotificationEvent:
    _require_status(
        order, OrderStatus.CONFIRMED,
        f"Order #{order.id} must be confirmed before marking as ready. Current status: {order.status}",
    )
    order.status = OrderStatus.READY.value

    restaurant = order.restaurant
    text = "🍽️ Your order is ready!\n\n"
    text += f"📋 Order #{order.id}\n"
    text += f"🏪 {_restaurant_name(order)}\n"
    text += f"📍 {(restaurant.address if restaurant else None) or 'Address not available'}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    if order.payment_method == PaymentMethod.COD.value:
        text += "💵 Payment: Cash on Delivery\n"
        text += f"Please have {format_money(order.total)} ready.\n\n"
    else:
        text += f"💳 Payment: {order.payment_method}\n\n"
    text += f"📞 Restaurant Contact: {(restaurant.phone if restaurant else None) or 'Not available'}\n"
    text += "⏰ Please collect your order soon!"
    return _customer_event(
        order, "order_ready", "Order Ready",
        f"Your order #{order.id} is ready for pickup/delivery", text,
    )


def _paid(order: Order) -> NotificationEvent:
    _require_status(
        order, OrderStatus.READY,
        f"Order #{order.id} must be ready before marking as paid. Current status: {order.status}",
    )
    if order.payment_status == PaymentStatus.PAID.value:
        raise InvalidTransitionError(order.id, f"Order #{order.id} is already marked as paid.")
    order.payment_status = PaymentStatus.PAID.value

    text = "💳 Payment confirmed!\n\n"
    text += f"📋 Order #{order.id}\n"
    text += f"🏪 {_restaurant_name(order)}\n"
    text += f"💰 Total: {format_money(order.total)}\n"
    text += f"💵 Payment Method: {order.payment_method}\n\n"
    text += "✅ Your payment has been received and confirmed.\n"
    text += "Your order will be delivered shortly!"
    return _customer_event(
        order, "payment_confirmed", "Payment Confirmed",
        f"Payment for order #{order.id} has been confirmed", text,
    )


def _delivered(order: Order) -> NotificationEvent:
    _require_status(
        order, OrderStatus.READY,
        f"Order #{order.id} must be ready before marking as delivered. Current status: {order.status}",
    )
    _ensure_paid_for_delivery(
        order,
        f"Order #{order.id} payment must be confirmed before delivery. "
        f"Reply 'PAID {order.id}' to confirm payment first.",
    )
    order.status = OrderStatus.DELIVERED.value

    text = "🎉 Order delivered successfully!\n\n"
    text += f"📋 Order #{order.id}\n"
    text += f"🏪 {_restaurant_name(order)}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "Thank you for ordering with us! 🙏\n"
    text += "We hope you enjoyed your meal.\n\n"
    text += "Please rate your experience and order again soon!"
    return _customer_event(
        order, "order_delivered", "Order Delivered",
        f"Your order #{order.id} has been delivered successfully", text,
    )


ACTION_HANDLERS = {
    OrderAction.ACCEPT: _accept,
    OrderAction.REJECT: _reject,
    OrderAction.READY: _ready,
    OrderAction.PAID: _paid,
    OrderAction.DELIVERED: _delivered,
}


def apply_action(
    db: Session,
    order_id: int,
    action: OrderAction,
    actor: Optional[User] = None,
) -> TransitionResult:
    """
    Apply an operator action to an order.

    Args:
        db: Database session
        order_id: Target order
        action: ACCEPT, REJECT, READY, PAID or DELIVERED
        actor: The operator issuing the action, or None for the dashboard admin

    Returns:
        TransitionResult with the committed order and the customer notification event

    Raises:
        OrderNotFoundError, NotAuthorizedError, InvalidTransitionError
    """
    order = _load_order(db, order_id)
    _authorize(order, actor)

    previous_status = order.status
    previous_payment_status = order.payment_status
    try:
        event = ACTION_HANDLERS[action](order)
    except LifecycleError:
        db.rollback()
        raise
    db.commit()
    db.refresh(order)

    auto_paid = (
        action == OrderAction.DELIVERED
        and previous_payment_status != PaymentStatus.PAID.value
    )
    logger.info(
        "Order %d %s: status %s -> %s, payment %s -> %s",
        order.id, action.value, previous_status, order.status,
        previous_payment_status, order.payment_status,
    )
    return TransitionResult(
        order=order,
        previous_status=previous_status,
        previous_payment_status=previous_payment_status,
        events=[event],
        payment_auto_confirmed=auto_paid,
    )


# =============================================================================
# Dashboard operations
# =============================================================================

STATUS_UPDATE_TEXTS = {
    OrderStatus.CONFIRMED.value: ("✅", "Your order has been confirmed by the restaurant. It will be prepared shortly."),
    OrderStatus.PREPARING.value: ("👨‍🍳", "Your order is now being prepared in the kitchen."),
    OrderStatus.READY.value: ("📦", "Your order is ready! Please come to the restaurant to pick up your order/parcel."),
    OrderStatus.DELIVERED.value: ("🎉", "Your order has been picked up. Thank you for visiting us!"),
    OrderStatus.CANCELLED.value: ("❌", "Your order has been cancelled."),
}

PAYMENT_UPDATE_TEXTS = {
    PaymentStatus.PAID.value: ("💰", "Your payment has been received. Thank you!"),
    PaymentStatus.REFUNDED.value: ("💸", "Your payment has been refunded."),
}


def _status_update_text(order: Order, status: str) -> str:
    emoji, message = STATUS_UPDATE_TEXTS.get(
        status, ("ℹ️", f"Your order status has been updated to: {status}")
    )
    return (
        f"{emoji} Order #{order.id} Update {emoji}\n\n"
        f"{message}\n\n"
        f"🏪 Restaurant: {_restaurant_name(order)}\n"
        f"💰 Total Amount: {format_money(order.total)}\n\n"
        "Thank you for your order!"
    )


def _payment_update_text(order: Order, payment_status: str) -> str:
    emoji, message = PAYMENT_UPDATE_TEXTS.get(
        payment_status, ("💱", f"Your payment status has been updated to: {payment_status}")
    )
    return (
        f"{emoji} Order #{order.id} Payment Update {emoji}\n\n"
        f"{message}\n\n"
        f"🏪 Restaurant: {_restaurant_name(order)}\n"
        f"💰 Total Amount: {format_money(order.total)}\n\n"
        "Thank you for your order!"
    )


def set_order_status(
    db: Session,
    order_id: int,
    status: str,
    actor: Optional[User] = None,
) -> TransitionResult:
    """
    Set an order's status from the dashboard.

    The dashboard may pick any status; the only guard is that delivery
    needs payment. COD included: the dashboard never marks payment itself.
    """
    try:
        new_status = OrderStatus(status)
    except ValueError:
        raise InvalidTransitionError(order_id, f"Invalid order status: {status}")

    order = _load_order(db, order_id)
    _authorize(order, actor)

    previous_status = order.status
    previous_payment_status = order.payment_status
    if new_status == OrderStatus.DELIVERED:
        _require_paid(order, "Cannot mark order as delivered. Payment must be confirmed first.")
    order.status = new_status.value
    db.commit()
    db.refresh(order)

    logger.info("Order %d status set to %s from dashboard (was %s)", order.id, order.status, previous_status)

    event = _customer_event(
        order,
        "order_status",
        f"Order #{order.id} Status Updated",
        f"Order #{order.id} status changed to '{order.status}' by restaurant.",
        _status_update_text(order, order.status),
        status=order.status,
    )
    return TransitionResult(
        order=order,
        previous_status=previous_status,
        previous_payment_status=previous_payment_status,
        events=[event],
    )


def set_payment_status(
    db: Session,
    order_id: int,
    payment_status: str,
    actor: Optional[User] = None,
) -> TransitionResult:
    """Set an order's payment status from the dashboard."""
    try:
        new_payment_status = PaymentStatus(payment_status)
    except ValueError:
        raise InvalidTransitionError(order_id, f"Invalid payment status: {payment_status}")

    order = _load_order(db, order_id)
    _authorize(order, actor)

    # Delivered orders stay paid (a refund is still allowed)
    if order.status == OrderStatus.DELIVERED.value and new_payment_status == PaymentStatus.PENDING:
        raise InvalidTransitionError(order.id, "Cannot mark a delivered order as unpaid.")

    previous_status = order.status
    previous_payment_status = order.payment_status
    order.payment_status = new_payment_status.value
    db.commit()
    db.refresh(order)

    logger.info(
        "Order %d payment set to %s from dashboard (was %s)",
        order.id, order.payment_status, previous_payment_status,
    )

    event = _customer_event(
        order,
        "payment_status",
        f"Order #{order.id} Payment Updated",
        f"Payment for order #{order.id} changed to '{order.payment_status}' by restaurant.",
        _payment_update_text(order, order.payment_status),
        status=order.payment_status,
    )
    return TransitionResult(
        order=order,
        previous_status=previous_status,
        previous_payment_status=previous_payment_status,
        events=[event],
    )
