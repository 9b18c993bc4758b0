"""
Admin Orders Routes for Food Order Bot
======================================

Dashboard endpoints for viewing orders and moving them through their
lifecycle. Status changes go through the same lifecycle engine as the
owner's WhatsApp commands, so the delivery-needs-payment rule is enforced
in one place.

Endpoints:
----------
- GET /admin/orders: List orders with pagination and filtering
- GET /admin/orders/{id}: Get detailed order information
- PATCH /admin/orders/{id}/status: Set fulfillment status
- PATCH /admin/orders/{id}/payment-status: Set payment status

Authentication:
---------------
All endpoints require admin authentication via HTTP Basic Auth. The admin
acts as super admin, so restaurant ownership is not checked.

Filtering:
----------
- ?status=pending - Only orders with this status
- ?restaurant_id=3 - Only orders for this restaurant

Usage:
------
    GET /admin/orders?status=confirmed&page=1&page_size=20
    PATCH /admin/orders/123/status {"status": "ready"}
    PATCH /admin/orders/123/payment-status {"payment_status": "paid"}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from ..auth import verify_admin_credentials
from ..db import get_db
from ..lifecycle import (
    InvalidTransitionError,
    NotAuthorizedError,
    OrderNotFoundError,
    OrderStatus,
    TransitionResult,
    set_order_status,
    set_payment_status,
)
from ..models import Order
from ..schemas.orders import (
    OrderDetailOut,
    OrderItemOut,
    OrderListResponse,
    OrderStatusUpdate,
    OrderSummaryOut,
    OrderUpdateResponse,
    PaymentStatusUpdate,
)
from ..services.notifications import Notifier
from ..services.order import get_order


logger = logging.getLogger(__name__)

# Router definition
admin_orders_router = APIRouter(prefix="/admin/orders", tags=["Admin - Orders"])

VALID_STATUSES = {s.value for s in OrderStatus}


def _isoformat(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _summary_fields(order: Order) -> dict:
    return {
        "id": order.id,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "total": order.total,
        "restaurant_id": order.restaurant_id,
        "restaurant_name": order.restaurant.name if order.restaurant else None,
        "customer_name": order.user.name if order.user else None,
        "customer_phone": order.user.phone if order.user else None,
        "delivery_address": order.delivery_address,
        "created_at": _isoformat(order.created_at),
    }


def _order_detail(order: Order) -> OrderDetailOut:
    items = [
        OrderItemOut(
            id=item.id,
            menu_item_id=item.menu_item_id,
            menu_item_name=item.menu_item.name if item.menu_item else None,
            quantity=item.quantity,
            price=item.price,
            line_total=item.line_total,
        )
        for item in order.items
    ]
    return OrderDetailOut(
        **_summary_fields(order),
        notes=order.notes,
        updated_at=_isoformat(order.updated_at),
        items=items,
    )


def _run_transition(db: Session, operation, order_id: int, value: str) -> OrderUpdateResponse:
    """Apply a lifecycle operation, map its errors to HTTP and dispatch its notifications."""
    try:
        transition: TransitionResult = operation(db, order_id, value, actor=None)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotAuthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    sent = Notifier(db).emit(transition.events)
    order = get_order(db, order_id)
    return OrderUpdateResponse(
        success=True,
        message="Order updated successfully",
        order=_order_detail(order),
        notifications_sent=sent,
    )


# =============================================================================
# Order Endpoints
# =============================================================================

@admin_orders_router.get("", response_model=OrderListResponse)
def list_orders(
    db: Session = Depends(get_db),
    _admin: str = Depends(verify_admin_credentials),
    status: Optional[str] = Query(
        None,
        description="Filter by status: pending, confirmed, ready, ... or leave empty for all",
    ),
    restaurant_id: Optional[int] = Query(None, description="Filter by restaurant"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
) -> OrderListResponse:
    """
    Return a paginated list of orders.

    Requires admin authentication. Orders are sorted by creation date
    (newest first).
    """
    query = db.query(Order).options(joinedload(Order.user), joinedload(Order.restaurant))

    if status in VALID_STATUSES:
        query = query.filter(Order.status == status)
    if restaurant_id is not None:
        query = query.filter(Order.restaurant_id == restaurant_id)

    total = query.count()
    offset = (page - 1) * page_size

    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset(offset)
        .limit(page_size)
        .all()
    )

    items = [OrderSummaryOut(**_summary_fields(o)) for o in orders]
    has_next = offset + len(items) < total

    return OrderListResponse(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        has_next=has_next,
    )


@admin_orders_router.get("/{order_id}", response_model=OrderDetailOut)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    _admin: str = Depends(verify_admin_credentials),
) -> OrderDetailOut:
    """Get an order with its line items."""
    order = get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_detail(order)


@admin_orders_router.patch("/{order_id}/status", response_model=OrderUpdateResponse)
def update_order_status(
    order_id: int,
    req: OrderStatusUpdate,
    db: Session = Depends(get_db),
    _admin: str = Depends(verify_admin_credentials),
) -> OrderUpdateResponse:
    """
    Set an order's status and notify the customer.

    Marking an order delivered requires payment to be confirmed first,
    except for COD orders which are marked paid on delivery.
    """
    return _run_transition(db, set_order_status, order_id, req.status)


@admin_orders_router.patch("/{order_id}/payment-status", response_model=OrderUpdateResponse)
def update_payment_status(
    order_id: int,
    req: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    _admin: str = Depends(verify_admin_credentials),
) -> OrderUpdateResponse:
    """Set an order's payment status and notify the customer."""
    return _run_transition(db, set_payment_status, order_id, req.payment_status)
