"""
Routes an inbound message to the handler for the session's current state.
"""

import logging
from typing import Callable, Dict

from . import flow
from .models import ConversationState
from .result import FlowResult

logger = logging.getLogger(__name__)

Handler = Callable[[flow.FlowContext, str], FlowResult]

STATE_HANDLERS: Dict[ConversationState, Handler] = {
    ConversationState.ASK_NAME: flow.handle_ask_name,
    ConversationState.ASK_LOCATION: flow.handle_ask_location,
    ConversationState.WELCOME: flow.handle_welcome,
    ConversationState.RESTAURANT_SELECTION: flow.handle_restaurant_selection,
    ConversationState.MENU_BROWSING: flow.handle_menu_browsing,
    ConversationState.CATEGORY_SELECTION: flow.handle_category_selection,
    ConversationState.ITEM_SELECTION: flow.handle_item_selection,
    ConversationState.CART_MANAGEMENT: flow.handle_cart_management,
    ConversationState.CART_VIEW: flow.handle_cart_view,
    ConversationState.DELETE_ITEM_SELECTION: flow.handle_delete_item_selection,
    ConversationState.PAYMENT_SELECTION: flow.handle_payment_selection,
}


def dispatch(ctx: flow.FlowContext, text: str) -> FlowResult:
    """Run the handler for ctx.session.state. Unknown states fall back to the welcome handler."""
    handler = STATE_HANDLERS.get(ctx.session.state, flow.handle_welcome)
    logger.debug("Dispatching %s message to %s", ctx.session.state.value, handler.__name__)
    return handler(ctx, text.strip())
