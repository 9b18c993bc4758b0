"""
Inbound WhatsApp message processing.

This module provides the MessageProcessor class that handles the complete
lifecycle of one inbound message:
- Sender normalization
- Message logging
- Owner command routing
- Session load/create, dispatch and save
- Reply delivery and notification fan-out

The webhook route only parses the transport's form fields and always
acknowledges; everything else happens here.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from .conversation import messages
from .conversation.dispatcher import dispatch
from .conversation.flow import FlowContext
from .conversation.models import ConversationSession, ConversationState
from .conversation.result import FlowResult
from .messaging import deliver_message, log_message
from .models import MessageDirection, UserRole
from .owner_commands import handle_owner_message
from .phone import is_valid_phone_key, normalize_phone
from .services.catalog import find_user_by_phone
from .services.notifications import Notifier
from .services.session import SessionStore

logger = logging.getLogger(__name__)


class InvalidPhoneError(ValueError):
    """Raised when a phone number does not reduce to a 10-digit key."""


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass
class InboundContext:
    """Input context for message processing (the webhook's form fields)."""
    sender: str
    body: Optional[str] = None
    button_payload: Optional[str] = None
    message_sid: Optional[str] = None


@dataclass
class ProcessingResult:
    """Output from message processing."""
    phone: str
    route: str  # "owner", "customer" or "error"
    replies: List[str] = field(default_factory=list)
    state: Optional[ConversationState] = None
    notifications_sent: int = 0


# -----------------------------------------------------------------------------
# MessageProcessor Class
# -----------------------------------------------------------------------------

class MessageProcessor:
    """
    Processes one inbound WhatsApp message.

    Usage:
        processor = MessageProcessor(db, store)
        result = processor.process(InboundContext(
            sender="whatsapp:+919876543210",
            body="Hello",
        ))
    """

    def __init__(self, db: Session, store: SessionStore):
        self.db = db
        self.store = store

    def process(self, ctx: InboundContext) -> ProcessingResult:
        """
        Process an inbound message and deliver the replies.

        Never raises: unexpected errors are logged, the DB session is rolled
        back and the sender gets a generic apology.
        """
        phone = normalize_phone(ctx.sender)
        text = self._log_inbound(phone, ctx)

        session: Optional[ConversationSession] = None
        try:
            user = find_user_by_phone(self.db, phone)
            if user is not None and user.role == UserRole.RESTAURANT_OWNER.value and text:
                route = "owner"
                flow_result = handle_owner_message(self.db, user, phone, text)
            else:
                route = "customer"
                session = self.store.get(phone)
                session, flow_result = self._run_customer_flow(phone, session, text)
        except Exception:
            self.db.rollback()
            logger.exception("Failed to process message from %s", phone)
            apology = messages.GENERIC_ERROR
            if session is not None and session.state == ConversationState.PAYMENT_SELECTION:
                apology = messages.ORDER_FAILED
            self._deliver(FlowResult().reply(phone, apology))
            return ProcessingResult(phone=phone, route="error", replies=[apology])

        self._deliver(flow_result)
        sent = Notifier(self.db).emit(flow_result.events) if flow_result.events else 0

        return ProcessingResult(
            phone=phone,
            route=route,
            replies=flow_result.bodies,
            state=session.state if session is not None else None,
            notifications_sent=sent,
        )

    def _log_inbound(self, phone: str, ctx: InboundContext) -> str:
        """Log the message and return the text to act on."""
        if ctx.button_payload:
            logger.info("WhatsApp button reply from %s: %s", phone, ctx.button_payload)
            log_message(self.db, phone, ctx.button_payload, MessageDirection.BUTTON_REPLY, ctx.message_sid)
            return ctx.button_payload.strip()

        body = (ctx.body or "").strip()
        logger.info("WhatsApp message from %s: %s", phone, body)
        if body:
            log_message(self.db, phone, body, MessageDirection.INCOMING, ctx.message_sid)
        return body

    def _run_customer_flow(self, phone: str, session: Optional[ConversationSession], text: str):
        result = FlowResult()
        if session is None:
            session = ConversationSession(state=ConversationState.ASK_NAME)
            result.reply(phone, messages.OPENING_PROMPT)
            logger.info("New conversation session for %s", phone)
        if text:
            result.extend(dispatch(FlowContext(db=self.db, phone=phone, session=session), text))

        self.store.set(phone, session)
        return session, result

    def _deliver(self, result: FlowResult) -> None:
        for message in result.messages:
            deliver_message(self.db, message.phone, message.body)


def start_ordering_flow(db: Session, store: SessionStore, phone: str) -> dict:
    """
    Restart the ordering conversation for a phone number.

    Clears any existing session, creates a new one at ask_name and sends the
    opening prompt. Used by the dashboard's "order via WhatsApp" button.

    Raises:
        InvalidPhoneError: phone does not reduce to a 10-digit key
    """
    key = normalize_phone(phone)
    if not is_valid_phone_key(key):
        raise InvalidPhoneError(f"The number {phone} is not a valid 10-digit phone number.")

    logger.info("Starting WhatsApp ordering flow for %s", key)
    store.delete(key)
    store.set(key, ConversationSession(state=ConversationState.ASK_NAME))
    deliver_message(db, key, messages.OPENING_PROMPT)
    return {"success": True, "message": "WhatsApp ordering flow started"}
