"""
Order Schemas for Food Order Bot
================================

Pydantic models for the dashboard order endpoints.

Endpoint Coverage:
------------------
- GET /admin/orders: List orders with pagination and filtering
- GET /admin/orders/{id}: Get detailed order information
- PATCH /admin/orders/{id}/status: Change fulfillment status
- PATCH /admin/orders/{id}/payment-status: Change payment status
- GET /admin/notifications: Dashboard notification center

Order Lifecycle:
----------------
status and payment_status are independent; see lifecycle.py for the moves
each allows. An order cannot be marked delivered while unpaid, except COD
orders which are marked paid on delivery.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderItemOut(BaseModel):
    """
    Response model for an order line item.

    Attributes:
        id: Database primary key
        menu_item_id: Menu item ordered (None if it was since deleted)
        menu_item_name: Current name of the menu item, if it still exists
        quantity: Number of units
        price: Unit price copied at order time
        line_total: price * quantity
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: Optional[int] = None
    menu_item_name: Optional[str] = None
    quantity: int
    price: float
    line_total: float


class OrderSummaryOut(BaseModel):
    """Response model for order list view."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    total: float
    restaurant_id: int
    restaurant_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_address: Optional[str] = None
    created_at: Optional[str] = None


class OrderDetailOut(OrderSummaryOut):
    """Response model for detailed order view, with line items."""
    notes: Optional[str] = None
    updated_at: Optional[str] = None
    items: List[OrderItemOut] = Field(default_factory=list)


class OrderListResponse(BaseModel):
    """
    Paginated response for order listing.

    Example:
        {
            "items": [...],
            "page": 1,
            "page_size": 10,
            "total": 42,
            "has_next": true
        }
    """
    items: List[OrderSummaryOut]
    page: int
    page_size: int
    total: int
    has_next: bool


class OrderStatusUpdate(BaseModel):
    """PATCH body for /admin/orders/{id}/status."""
    status: str = Field(..., min_length=1, description="pending, confirmed, preparing, ready, delivered, rejected or cancelled")


class PaymentStatusUpdate(BaseModel):
    """PATCH body for /admin/orders/{id}/payment-status."""
    payment_status: str = Field(..., min_length=1, description="pending, paid or refunded")


class OrderUpdateResponse(BaseModel):
    success: bool
    message: str
    order: OrderDetailOut
    notifications_sent: int = 0


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    user_id: int
    order_id: Optional[int] = None
    status: Optional[str] = None
    is_read: bool
    created_at: Optional[str] = None
