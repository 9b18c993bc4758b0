"""
Admin Notification Routes for Food Order Bot
============================================

Read side of the dashboard notification center. Rows are written by the
notification fan-out whenever an order is placed or changes state.

Endpoints:
----------
- GET /admin/notifications: List notifications, newest first
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import verify_admin_credentials
from ..db import get_db
from ..models import Notification
from ..schemas.orders import NotificationOut


logger = logging.getLogger(__name__)

admin_notifications_router = APIRouter(prefix="/admin/notifications", tags=["Admin - Notifications"])


@admin_notifications_router.get("", response_model=List[NotificationOut])
def list_notifications(
    db: Session = Depends(get_db),
    _admin: str = Depends(verify_admin_credentials),
    user_id: Optional[int] = Query(None, description="Only notifications for this user"),
    order_id: Optional[int] = Query(None, description="Only notifications for this order"),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> List[NotificationOut]:
    query = db.query(Notification)
    if user_id is not None:
        query = query.filter(Notification.user_id == user_id)
    if order_id is not None:
        query = query.filter(Notification.order_id == order_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712

    rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return [
        NotificationOut(
            id=n.id,
            type=n.type,
            title=n.title,
            message=n.message,
            user_id=n.user_id,
            order_id=n.order_id,
            status=n.status,
            is_read=n.is_read,
            created_at=n.created_at.isoformat() if n.created_at else None,
        )
        for n in rows
    ]
