"""
Owner Command Interpreter
=========================

Restaurant owners manage orders by sending fixed commands over the same
WhatsApp number customers order from. The MessageProcessor routes every
message from a restaurant_owner here before the customer flow, and owners
never fall through into ordering: anything that is not a command gets the
help text.

Grammar (case-insensitive, whitespace-separated):
-------------------------------------------------
    ORDERS
    ACCEPT <order_id>
    REJECT <order_id>
    READY <order_id>
    PAID <order_id>
    DELIVERED <order_id>

Recognition (parse_owner_command) is separate from execution
(COMMAND_HANDLERS), so adding a command means adding a pattern entry and a
handler.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from .conversation.messages import format_money
from .conversation.result import FlowResult
from .lifecycle import LifecycleError, OrderAction, TransitionResult, apply_action
from .models import Order, PaymentMethod, User
from .services.catalog import get_owner_restaurant
from .services.order import list_active_orders

logger = logging.getLogger(__name__)

ORDERS_COMMAND = "ORDERS"

_ACTION_PATTERN = re.compile(
    r"^(?P<name>ACCEPT|REJECT|READY|PAID|DELIVERED)\s+(?P<order_id>[0-9]+)$",
    re.IGNORECASE,
)
_ORDERS_PATTERN = re.compile(r"^ORDERS$", re.IGNORECASE)

COMMAND_ERROR = "❌ Sorry, there was an error processing your command. Please try again."
NO_RESTAURANT = "❌ No restaurant found for your account."


@dataclass(frozen=True)
class OwnerCommand:
    name: str
    order_id: Optional[int] = None


def parse_owner_command(text: str) -> Optional[OwnerCommand]:
    """Parse an owner command, or return None if text is not one."""
    text = (text or "").strip()
    if _ORDERS_PATTERN.match(text):
        return OwnerCommand(name=ORDERS_COMMAND)
    match = _ACTION_PATTERN.match(text)
    if match:
        return OwnerCommand(name=match.group("name").upper(), order_id=int(match.group("order_id")))
    return None


# =============================================================================
# Operator replies
# =============================================================================

def _accepted_reply(order: Order) -> str:
    text = "✅ ORDER ACCEPTED!\n\n"
    text += f"📋 Order #{order.id} has been confirmed\n"
    text += f"🏪 Restaurant: {order.restaurant.name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "📱 The customer will be notified about the confirmation.\n\n"
    text += "Next steps:\n"
    text += "• Start preparing the order\n"
    text += f"• Reply 'READY {order.id}' when order is ready for pickup/delivery"
    return text


def _rejected_reply(order: Order) -> str:
    text = "❌ ORDER REJECTED\n\n"
    text += f"📋 Order #{order.id} has been rejected\n"
    text += f"🏪 Restaurant: {order.restaurant.name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "📱 The customer will be notified about the rejection."
    return text


def _ready_reply(order: Order) -> str:
    text = "🍽️ ORDER READY!\n\n"
    text += f"📋 Order #{order.id} is ready for pickup/delivery\n"
    text += f"🏪 Restaurant: {order.restaurant.name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "📱 The customer has been notified.\n\n"
    text += "Next steps:\n"
    text += "• Wait for customer pickup/delivery\n"
    if order.payment_method == PaymentMethod.COD.value:
        text += f"• Collect {format_money(order.total)} cash payment\n"
        text += f"• Reply 'DELIVERED {order.id}' when delivered (COD - no PAID command needed)"
    else:
        text += f"• Reply 'PAID {order.id}' when payment is received\n"
        text += f"• Then reply 'DELIVERED {order.id}' when delivered"
    return text


def _paid_reply(order: Order) -> str:
    text = "💳 PAYMENT CONFIRMED!\n\n"
    text += f"📋 Order #{order.id} - Payment received\n"
    text += f"🏪 Restaurant: {order.restaurant.name}\n"
    text += f"💰 Total: {format_money(order.total)}\n"
    text += f"💵 Payment Method: {order.payment_method}\n\n"
    text += "📱 The customer has been notified.\n\n"
    text += "✅ Order is now ready for delivery!\n"
    text += f"Reply 'DELIVERED {order.id}' when order is delivered"
    return text


def _delivered_reply(order: Order) -> str:
    text = "✅ ORDER DELIVERED!\n\n"
    text += f"📋 Order #{order.id} has been successfully delivered\n"
    text += f"🏪 Restaurant: {order.restaurant.name}\n"
    text += f"💰 Total: {format_money(order.total)}\n\n"
    text += "📱 The customer has been notified.\n"
    text += "🎉 Thank you for completing this order!"
    return text


ACTION_REPLIES: Dict[OrderAction, Callable[[Order], str]] = {
    OrderAction.ACCEPT: _accepted_reply,
    OrderAction.REJECT: _rejected_reply,
    OrderAction.READY: _ready_reply,
    OrderAction.PAID: _paid_reply,
    OrderAction.DELIVERED: _delivered_reply,
}

_COMMAND_LIST = (
    "• ORDERS - Check pending orders\n"
    "• ACCEPT [id] - Accept order\n"
    "• REJECT [id] - Reject order\n"
    "• READY [id] - Mark as ready\n"
    "• PAID [id] - Confirm payment\n"
    "• DELIVERED [id] - Mark as delivered"
)


def help_message() -> str:
    text = "🏪 RESTAURANT OWNER COMMANDS\n\n"
    text += "📋 Order Management:\n"
    text += "• ORDERS - View pending orders\n"
    text += "• ACCEPT [order_id] - Accept order\n"
    text += "• REJECT [order_id] - Reject order\n"
    text += "• READY [order_id] - Mark as ready\n"
    text += "• PAID [order_id] - Confirm payment\n"
    text += "• DELIVERED [order_id] - Mark as delivered\n\n"
    text += "📊 Order Flow:\n"
    text += "pending → ACCEPT → confirmed → READY → ready → PAID → DELIVERED → delivered\n\n"
    text += "💡 Examples:\n"
    text += '• Type "ORDERS" to see all pending orders\n'
    text += '• Type "ACCEPT 123" to accept order #123\n'
    text += '• Type "READY 123" to mark order #123 as ready\n\n'
    text += "❓ Need help? Contact support."
    return text


def _orders_list(restaurant_name: str, orders) -> str:
    if not orders:
        text = "📋 No pending orders\n\n"
        text += f"🏪 {restaurant_name}\n"
        text += "✅ All caught up! No orders waiting for action.\n\n"
        text += "Available commands:\n"
        text += _COMMAND_LIST
        return text

    text = f"📋 PENDING ORDERS ({len(orders)})\n\n"
    text += f"🏪 {restaurant_name}\n\n"
    for index, order in enumerate(orders, start=1):
        customer = order.user
        placed = order.created_at.strftime("%d/%m/%Y, %I:%M %p") if order.created_at else "N/A"
        text += f"{index}. Order #{order.id}\n"
        text += f"   👤 {(customer.name if customer else None) or 'Customer'}\n"
        text += f"   📞 {(customer.phone if customer else None) or 'N/A'}\n"
        text += f"   💰 {format_money(order.total)}\n"
        text += f"   📱 Status: {order.status}\n"
        text += f"   💳 Payment: {order.payment_status} ({order.payment_method})\n"
        text += f"   ⏰ {placed}\n\n"
    text += "Commands:\n"
    text += "• ACCEPT [id] - Accept pending order\n"
    text += "• REJECT [id] - Reject pending order\n"
    text += "• READY [id] - Mark confirmed order as ready\n"
    text += "• PAID [id] - Confirm payment received\n"
    text += "• DELIVERED [id] - Mark ready+paid order as delivered"
    return text


# =============================================================================
# Command handlers
# =============================================================================

def _handle_orders(db: Session, owner: User, phone: str, command: OwnerCommand) -> FlowResult:
    restaurant = get_owner_restaurant(db, owner.id)
    if restaurant is None:
        return FlowResult().reply(phone, NO_RESTAURANT)
    orders = list_active_orders(db, restaurant.id)
    return FlowResult().reply(phone, _orders_list(restaurant.name, orders))


def _handle_action(db: Session, owner: User, phone: str, command: OwnerCommand) -> FlowResult:
    action = OrderAction(command.name)
    try:
        transition: TransitionResult = apply_action(db, command.order_id, action, actor=owner)
    except LifecycleError as e:
        logger.info("Owner %d %s %d rejected: %s", owner.id, action.value, command.order_id, e)
        return FlowResult().reply(phone, f"❌ {e}")

    result = FlowResult().reply(phone, ACTION_REPLIES[action](transition.order))
    result.events.extend(transition.events)
    return result


CommandHandler = Callable[[Session, User, str, OwnerCommand], FlowResult]

COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    ORDERS_COMMAND: _handle_orders,
    OrderAction.ACCEPT.value: _handle_action,
    OrderAction.REJECT.value: _handle_action,
    OrderAction.READY.value: _handle_action,
    OrderAction.PAID.value: _handle_action,
    OrderAction.DELIVERED.value: _handle_action,
}


def handle_owner_message(db: Session, owner: User, phone: str, text: str) -> FlowResult:
    """
    Handle a message from a restaurant owner.

    Always consumes the message: commands are executed, anything else is
    answered with the help text.
    """
    command = parse_owner_command(text)
    if command is None:
        return FlowResult().reply(phone, help_message())

    handler = COMMAND_HANDLERS[command.name]
    try:
        return handler(db, owner, phone, command)
    except Exception:
        db.rollback()
        logger.exception("Owner command %r from %s failed", text, phone)
        return FlowResult().reply(phone, COMMAND_ERROR)
