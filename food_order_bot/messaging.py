"""
WhatsApp transport for conversation replies, owner alerts and status updates.

Sends real messages via Twilio when configured, falls back to logging in
simulated mode so the ordering flow runs without live credentials.

Environment variables (see config.py):
- TWILIO_ACCOUNT_SID: Twilio Account SID (starts with AC)
- TWILIO_AUTH_TOKEN: Twilio Auth Token
- TWILIO_WHATSAPP_NUMBER: Sender address, e.g. whatsapp:+14155238886
"""

import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

from . import config
from .models import Message, MessageDirection, User
from .phone import to_whatsapp_address

logger = logging.getLogger(__name__)


def send_whatsapp_message(phone: str, body: str) -> dict:
    """
    Send a WhatsApp message to a phone key.

    Args:
        phone: 10-digit phone key
        body: Message text

    Returns:
        dict with status, sid and the destination. In simulated mode the
        status is "simulated" and the sid is synthetic.
    """
    if not config.is_twilio_configured():
        logger.info("SIMULATED WhatsApp to %s: %s", phone, body)
        return {
            "status": "simulated",
            "sid": f"sim_{int(time.time() * 1000)}",
            "to": phone,
            "body": body,
            "mock": True,
        }

    try:
        from twilio.rest import Client

        client = Client(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN)
        to_address = to_whatsapp_address(phone)

        message = client.messages.create(
            body=body,
            from_=config.TWILIO_WHATSAPP_NUMBER,
            to=to_address,
        )

        logger.info("WhatsApp message sent to %s (SID: %s)", to_address, message.sid)

        return {
            "status": "sent",
            "sid": message.sid,
            "to": to_address,
            "body": body,
            "mock": False,
        }

    except Exception as e:
        logger.error("Failed to send WhatsApp message to %s: %s", phone, str(e))
        return {
            "status": "error",
            "sid": None,
            "to": phone,
            "error": str(e),
            "mock": False,
        }


def log_message(
    db: Session,
    phone: str,
    body: str,
    direction: MessageDirection,
    message_sid: Optional[str] = None,
) -> Optional[Message]:
    """Append an entry to the conversation log. Failures are logged, not raised."""
    try:
        user = db.query(User).filter(User.phone == phone).first()
        entry = Message(
            user_id=user.id if user else None,
            phone=phone,
            body=body,
            direction=direction.value,
            message_sid=message_sid,
        )
        db.add(entry)
        db.commit()
        return entry
    except Exception:
        db.rollback()
        logger.exception("Failed to log %s message for %s", direction.value, phone)
        return None


def deliver_message(db: Session, phone: str, body: str) -> dict:
    """
    Log an outgoing message and hand it to the transport.

    Best effort: the send is attempted once and transport errors are
    reported in the returned dict rather than raised.
    """
    log_message(db, phone, body, MessageDirection.OUTGOING)
    return send_whatsapp_message(phone, body)
