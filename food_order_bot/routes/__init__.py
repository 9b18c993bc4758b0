"""
Routes Package for Food Order Bot
=================================

API route definitions organized by domain. Each module defines a FastAPI
APIRouter with related endpoints grouped together.

**Messaging Routes:**
- whatsapp.py: Inbound webhook and the flow-start endpoint

**Admin Routes (require authentication):**
- admin_orders.py: Order listing and lifecycle updates
- admin_notifications.py: Dashboard notification center

Route Dependencies:
-------------------
- get_db: Database session for queries
- get_session_store: Conversation session store
- verify_admin_credentials: Admin authentication
- limiter.limit(): Rate limiting (flow-start only)

Error Handling:
---------------
Routes raise HTTPException for error conditions:
- 400: Bad request (invalid phone, illegal order move)
- 401: Unauthorized (invalid credentials)
- 403: Forbidden (order belongs to another restaurant)
- 404: Not found (invalid ID)
- 429: Too many requests (rate limited)
- 503: Service unavailable (missing configuration)

The webhook is the exception: it always answers 200.
"""

from .whatsapp import whatsapp_router, limiter
from .admin_orders import admin_orders_router
from .admin_notifications import admin_notifications_router

__all__ = [
    "whatsapp_router",
    "limiter",
    "admin_orders_router",
    "admin_notifications_router",
]
