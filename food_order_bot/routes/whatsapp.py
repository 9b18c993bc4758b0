"""
WhatsApp Routes for Food Order Bot
==================================

Endpoints:
----------
- POST /whatsapp/webhook: Inbound messages from the transport
- POST /whatsapp/start-order: Restart the ordering conversation for a phone

Webhook Contract:
-----------------
The transport posts form fields From, Body, ButtonPayload and MessageSid
and expects a 200 acknowledgment whatever happens. The endpoint always
answers plain-text "OK"; processing errors are logged and the sender gets
an apology message instead.

Rate Limiting:
--------------
start-order is public (the dashboard's "order via WhatsApp" button) and is
rate limited per client address. The webhook is never rate limited.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..config import RATE_LIMIT_ENABLED, get_rate_limit_start_order
from ..db import get_db
from ..message_processor import (
    InboundContext,
    InvalidPhoneError,
    MessageProcessor,
    start_ordering_flow,
)
from ..schemas.whatsapp import StartOrderRequest, StartOrderResponse
from ..services.session import SessionStore, get_session_store


logger = logging.getLogger(__name__)

# Router definition
whatsapp_router = APIRouter(prefix="/whatsapp", tags=["WhatsApp"])

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)


# =============================================================================
# Webhook
# =============================================================================

@whatsapp_router.post("/webhook", response_class=PlainTextResponse)
def whatsapp_webhook(
    sender: str = Form("", alias="From"),
    body: Optional[str] = Form(None, alias="Body"),
    button_payload: Optional[str] = Form(None, alias="ButtonPayload"),
    message_sid: Optional[str] = Form(None, alias="MessageSid"),
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> PlainTextResponse:
    """Receive one inbound WhatsApp message. Always acknowledges with 200."""
    if not sender:
        logger.warning("Webhook call without a sender (MessageSid=%s)", message_sid)
        return PlainTextResponse("OK")

    try:
        result = MessageProcessor(db, store).process(InboundContext(
            sender=sender,
            body=body,
            button_payload=button_payload,
            message_sid=message_sid,
        ))
        logger.debug(
            "Processed message from %s via %s route (%d replies)",
            result.phone, result.route, len(result.replies),
        )
    except Exception:
        logger.exception("Webhook processing failed for %s", sender)

    return PlainTextResponse("OK")


# =============================================================================
# Flow start
# =============================================================================

@whatsapp_router.post("/start-order", response_model=StartOrderResponse)
@limiter.limit(get_rate_limit_start_order)
def start_order(
    request: Request,
    req: StartOrderRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> StartOrderResponse:
    """
    Clear any session for the phone and send the opening prompt.

    Returns 400 if the phone does not reduce to a 10-digit number.
    """
    try:
        outcome = start_ordering_flow(db, store, req.phone)
    except InvalidPhoneError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StartOrderResponse(**outcome)
