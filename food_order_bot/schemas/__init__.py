"""
Schemas Package for Food Order Bot
==================================

Pydantic models used for API request validation and response serialization.

Schema Organization:
--------------------
- **orders.py**: Dashboard order, order item and notification schemas
- **whatsapp.py**: Flow-start request/response schemas

Naming Conventions:
-------------------
- *Out: Response models (e.g., OrderDetailOut)
- *Update: Request models for PATCH (e.g., OrderStatusUpdate)
- *Request / *Response: Other request and response bodies
"""

# Order schemas
from .orders import (
    OrderItemOut,
    OrderSummaryOut,
    OrderDetailOut,
    OrderListResponse,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    OrderUpdateResponse,
    NotificationOut,
)

# WhatsApp schemas
from .whatsapp import (
    StartOrderRequest,
    StartOrderResponse,
)

__all__ = [
    "OrderItemOut",
    "OrderSummaryOut",
    "OrderDetailOut",
    "OrderListResponse",
    "OrderStatusUpdate",
    "PaymentStatusUpdate",
    "OrderUpdateResponse",
    "NotificationOut",
    "StartOrderRequest",
    "StartOrderResponse",
]
