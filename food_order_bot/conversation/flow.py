"""
Conversation Flow Handlers
==========================

One handler per ConversationState. Each takes the FlowContext for the
current message and the stripped message text, mutates ctx.session and
returns a FlowResult.

State Graph:
------------
    ask_name -> ask_location -> welcome -> restaurant_selection -> menu_browsing
    menu_browsing:        1 categories | 2 cart view | 3 welcome
    category_selection:   0 menu_browsing | n item_selection
    item_selection:       0 category_selection | n cart_management
    cart_management:      1 categories | 2 cart view | 3 delete | 4 checkout
    cart_view:            1 categories | 2 checkout | 3 delete | 4 clear
    delete_item_selection: 0 cart view | n cart_management (menu_browsing if empty)
    payment_selection:    1 COD | 2 UPI -> order placed, back to welcome

Input Rules:
------------
Selection lists are 1-based. "0" means back wherever a back option is
shown. Anything out of range or non-numeric gets a corrective prompt and
the state does not change.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from . import messages
from .models import ConversationSession, ConversationState, MenuItemSnapshot
from .result import FlowResult
from ..models import OrderStatus, PaymentMethod, PaymentStatus, User
from ..services import catalog
from ..services.notifications import NotificationEvent
from ..services.order import create_order, find_or_create_customer


logger = logging.getLogger(__name__)

BACK = "0"

PAYMENT_OPTIONS = {
    "1": PaymentMethod.COD,
    "2": PaymentMethod.UPI,
}


@dataclass
class FlowContext:
    """Everything a handler needs for one inbound message."""
    db: Session
    phone: str
    session: ConversationSession


def parse_selection(text: str, count: int) -> Optional[int]:
    """Resolve a 1-based reply against a list of count entries. Returns a 0-based index."""
    text = text.strip()
    if not text.isdecimal():
        return None
    index = int(text) - 1
    if 0 <= index < count:
        return index
    return None


# =============================================================================
# Identification
# =============================================================================

def handle_ask_name(ctx: FlowContext, text: str) -> FlowResult:
    result = FlowResult()
    if text.strip().lower() in messages.GREETING_TOKENS:
        return result.reply(ctx.phone, messages.GREETING_REPROMPT)

    ctx.session.name = text
    ctx.session.state = ConversationState.ASK_LOCATION
    return result.reply(ctx.phone, messages.name_accepted(text))


def handle_ask_location(ctx: FlowContext, text: str) -> FlowResult:
    ctx.session.location = text
    ctx.session.state = ConversationState.WELCOME
    result = FlowResult().reply(ctx.phone, messages.location_accepted(text))
    return result.extend(handle_welcome(ctx, text))


# =============================================================================
# Restaurant selection
# =============================================================================

def handle_welcome(ctx: FlowContext, text: str = "") -> FlowResult:
    """List restaurants and start a fresh cart. Any input from the welcome state lands here."""
    result = FlowResult()
    restaurants = catalog.list_restaurants(ctx.db)
    if not restaurants:
        ctx.session.state = ConversationState.WELCOME
        return result.reply(ctx.phone, messages.NO_RESTAURANTS)

    ctx.session.restaurants = restaurants
    ctx.session.cart = []
    ctx.session.state = ConversationState.RESTAURANT_SELECTION
    return result.reply(ctx.phone, messages.restaurant_list(restaurants))


def handle_restaurant_selection(ctx: FlowContext, text: str) -> FlowResult:
    result = FlowResult()
    index = parse_selection(text, len(ctx.session.restaurants))
    if index is None:
        return result.reply(ctx.phone, messages.INVALID_RESTAURANT)

    session = ctx.session
    session.selected_restaurant = session.restaurants[index]
    session.categories = []
    session.menu_items = []
    session.current_category_items = []
    session.state = ConversationState.MENU_BROWSING
    logger.debug("%s selected restaurant %d", ctx.phone, session.selected_restaurant.id)
    return result.reply(
        ctx.phone,
        messages.restaurant_options(session.selected_restaurant, len(session.cart)),
    )


def handle_menu_browsing(ctx: FlowContext, text: str) -> FlowResult:
    if ctx.session.selected_restaurant is None:
        return FlowResult().reply(ctx.phone, messages.NO_RESTAURANT_SELECTED).extend(handle_welcome(ctx))

    if text == "1":
        return show_categories(ctx)
    if text == "2":
        return show_cart(ctx)
    if text == "3":
        return handle_welcome(ctx)
    return FlowResult().reply(ctx.phone, messages.MENU_OPTIONS_INVALID)


# =============================================================================
# Menu
# =============================================================================

def show_categories(ctx: FlowContext) -> FlowResult:
    """Snapshot the selected restaurant's menu and list its categories."""
    result = FlowResult()
    session = ctx.session
    restaurant = session.selected_restaurant
    if restaurant is None:
        return result.reply(ctx.phone, messages.NO_RESTAURANT_SELECTED).extend(handle_welcome(ctx))

    items = catalog.list_available_menu_items(ctx.db, restaurant.id)
    if not items:
        return result.reply(ctx.phone, messages.NO_MENU_ITEMS)

    session.menu_items = items
    session.categories = catalog.categories_in_order(items)
    session.current_category_items = []
    session.state = ConversationState.CATEGORY_SELECTION
    return result.reply(ctx.phone, messages.menu_categories(restaurant.name, session.categories))


def handle_category_selection(ctx: FlowContext, text: str) -> FlowResult:
    session = ctx.session
    if text == BACK:
        session.state = ConversationState.MENU_BROWSING
        return FlowResult().reply(
            ctx.phone,
            messages.restaurant_options(session.selected_restaurant, len(session.cart), selected=False),
        )

    index = parse_selection(text, len(session.categories))
    if index is None:
        return FlowResult().reply(ctx.phone, messages.INVALID_CATEGORY)

    category = session.categories[index]
    session.current_category_items = session.items_in_category(category)
    session.state = ConversationState.ITEM_SELECTION
    return FlowResult().reply(ctx.phone, messages.category_items(category, session.current_category_items))


def handle_item_selection(ctx: FlowContext, text: str) -> FlowResult:
    session = ctx.session
    if text == BACK:
        return show_categories(ctx)

    index = parse_selection(text, len(session.current_category_items))
    if index is None:
        return FlowResult().reply(ctx.phone, messages.INVALID_ITEM)

    item: MenuItemSnapshot = session.current_category_items[index]
    session.add_to_cart(item)
    session.state = ConversationState.CART_MANAGEMENT
    return FlowResult().reply(ctx.phone, messages.item_added(item, session))


# =============================================================================
# Cart
# =============================================================================

def show_cart(ctx: FlowContext) -> FlowResult:
    session = ctx.session
    if not session.cart:
        if session.state == ConversationState.DELETE_ITEM_SELECTION:
            session.state = ConversationState.MENU_BROWSING
        return FlowResult().reply(ctx.phone, messages.CART_EMPTY)

    session.state = ConversationState.CART_VIEW
    return FlowResult().reply(ctx.phone, messages.cart_view(session))


def show_cart_for_deletion(ctx: FlowContext) -> FlowResult:
    session = ctx.session
    if not session.cart:
        return FlowResult().reply(ctx.phone, messages.CART_EMPTY)

    session.state = ConversationState.DELETE_ITEM_SELECTION
    return FlowResult().reply(ctx.phone, messages.cart_deletion_list(session))


def handle_cart_management(ctx: FlowContext, text: str) -> FlowResult:
    """Options shown after adding or deleting an item."""
    if text == "1":
        return show_categories(ctx)
    if text == "2":
        return show_cart(ctx)
    if text == "3":
        return show_cart_for_deletion(ctx)
    if text == "4":
        return initiate_checkout(ctx)
    return FlowResult().reply(ctx.phone, messages.CART_OPTIONS_INVALID)


def handle_cart_view(ctx: FlowContext, text: str) -> FlowResult:
    """Options shown under the cart listing."""
    if text == "1":
        return show_categories(ctx)
    if text == "2":
        return initiate_checkout(ctx)
    if text == "3":
        return show_cart_for_deletion(ctx)
    if text == "4":
        ctx.session.cart = []
        ctx.session.state = ConversationState.MENU_BROWSING
        return FlowResult().reply(ctx.phone, messages.CART_CLEARED)
    return FlowResult().reply(ctx.phone, messages.CART_OPTIONS_INVALID)


def handle_delete_item_selection(ctx: FlowContext, text: str) -> FlowResult:
    session = ctx.session
    if text == BACK:
        return show_cart(ctx)

    index = parse_selection(text, len(session.cart))
    if index is None:
        return FlowResult().reply(ctx.phone, messages.INVALID_DELETE)

    removed = session.remove_cart_line(index)
    if session.cart:
        session.state = ConversationState.CART_MANAGEMENT
    else:
        session.state = ConversationState.MENU_BROWSING
    return FlowResult().reply(ctx.phone, messages.item_removed(removed, session))


# =============================================================================
# Checkout
# =============================================================================

def initiate_checkout(ctx: FlowContext) -> FlowResult:
    session = ctx.session
    if not session.cart:
        return FlowResult().reply(ctx.phone, messages.CHECKOUT_EMPTY)
    if session.selected_restaurant is None:
        return FlowResult().reply(ctx.phone, messages.NO_RESTAURANT_SELECTED).extend(handle_welcome(ctx))

    # Snapshot; the order is created with this total even if prices change
    session.total = session.cart_total()
    session.state = ConversationState.PAYMENT_SELECTION
    return FlowResult().reply(ctx.phone, messages.checkout_summary(session))


def handle_payment_selection(ctx: FlowContext, text: str) -> FlowResult:
    """
    Place the order for the chosen payment method.

    Order creation errors propagate; the caller rolls back and apologizes,
    and since the session is not saved the customer stays at payment
    selection and can retry.
    """
    session = ctx.session
    if not session.name or not session.location:
        session.state = ConversationState.ASK_NAME
        return FlowResult().reply(ctx.phone, messages.MISSING_DETAILS)

    method = PAYMENT_OPTIONS.get(text)
    if method is None:
        return FlowResult().reply(ctx.phone, messages.INVALID_PAYMENT)

    restaurant = session.selected_restaurant
    if restaurant is None or not session.cart:
        return FlowResult().reply(ctx.phone, messages.CHECKOUT_EMPTY).extend(handle_welcome(ctx))

    # The order commit is the last database step of this handler
    owner = ctx.db.get(User, restaurant.owner_id)
    customer = find_or_create_customer(ctx.db, ctx.phone, session.name)
    order = create_order(
        ctx.db,
        user_id=customer.id,
        restaurant_id=restaurant.id,
        total=session.total,
        delivery_address=session.location,
        notes=messages.order_notes(session.name, ctx.phone),
        payment_method=method.value,
        lines=[(line.menu_item_id, line.quantity, line.price) for line in session.cart],
        status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
    )

    if method == PaymentMethod.COD:
        confirmation = messages.cod_confirmation(session.total, session.location)
    else:
        confirmation = messages.upi_confirmation(session.total, session.location)

    result = FlowResult().reply(ctx.phone, confirmation)
    result.events.append(NotificationEvent(
        type="order_placed",
        title="New Order Placed",
        message=messages.owner_new_order_notification(order.id, session.name, session.total),
        order_id=order.id,
        user_id=owner.id if owner else None,
        phone=owner.phone if owner else None,
        text=messages.owner_new_order_alert(
            order.id, restaurant, session.name, ctx.phone, session.cart, session.total,
        ),
    ))

    session.cart = []
    session.total = 0.0
    session.state = ConversationState.WELCOME
    return result
