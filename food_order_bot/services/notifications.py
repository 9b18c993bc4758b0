"""
Notification Fan-out
====================

The lifecycle engine and the ordering conversation describe side effects as
NotificationEvent values. The Notifier turns each event into:

1. A dashboard Notification row for the recipient user (if user_id is set)
2. A WhatsApp message to the recipient's phone (if phone and text are set)

The two steps are independent and best effort. A failure in either is
logged and swallowed; it never undoes the order change that produced it.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..messaging import deliver_message
from ..models import Notification


logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    """A side effect to dispatch after an order change."""
    type: str  # order_placed, order_confirmed, order_rejected, ...
    title: str
    message: str  # dashboard text
    order_id: Optional[int] = None
    user_id: Optional[int] = None  # dashboard recipient
    phone: Optional[str] = None  # WhatsApp recipient
    text: Optional[str] = None  # WhatsApp body
    status: Optional[str] = "pending"


class Notifier:
    """
    Dispatches NotificationEvents.

    Usage:
        Notifier(db).emit(result.events)
    """

    def __init__(self, db: Session):
        self.db = db

    def emit(self, events: Iterable[NotificationEvent]) -> int:
        """Dispatch events in order. Returns how many were dispatched without error."""
        delivered = 0
        for event in events:
            ok = self._record(event)
            ok = self._send(event) and ok
            if ok:
                delivered += 1
        return delivered

    def _record(self, event: NotificationEvent) -> bool:
        if event.user_id is None:
            return True
        try:
            self.db.add(Notification(
                type=event.type,
                title=event.title,
                message=event.message,
                user_id=event.user_id,
                order_id=event.order_id,
                status=event.status,
            ))
            self.db.commit()
            return True
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to create %s notification for user %s (order %s)",
                event.type, event.user_id, event.order_id,
            )
            return False

    def _send(self, event: NotificationEvent) -> bool:
        if not event.phone or not event.text:
            return True
        try:
            result = deliver_message(self.db, event.phone, event.text)
        except Exception:
            logger.exception("Failed to send %s message to %s", event.type, event.phone)
            return False
        if result.get("status") == "error":
            logger.warning("%s message to %s not delivered: %s", event.type, event.phone, result.get("error"))
            return False
        return True
