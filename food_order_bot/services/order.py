"""
Order Persistence Service
=========================

Creates customers and orders for the messaging channel and answers the
order queries used by the owner command interpreter and dashboard routes.

Key Functions:
--------------
- find_or_create_customer: Look up a user by phone key or create one
- create_order: Insert an order and its line items in one transaction
- list_active_orders: Orders awaiting action for a restaurant

Transactions:
-------------
create_order adds the order, flushes to obtain its id, adds the line items
and commits once. If anything fails the caller rolls back and no partial
order is left behind.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from ..models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    User,
    UserRole,
)


logger = logging.getLogger(__name__)

# Order ids are 64-bit integer keys; larger ids cannot exist
MAX_ORDER_ID = 2 ** 63 - 1

# Statuses listed by the ORDERS command
ACTIVE_ORDER_STATUSES = (
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.READY.value,
)


def find_or_create_customer(db: Session, phone: str, name: str) -> User:
    """
    Return the user with this phone key, creating a customer if needed.

    New users get no password hash, which marks them as messaging-origin
    accounts. The new row is
    flushed, not committed, so it shares the caller's transaction.
    """
    user = db.query(User).filter(User.phone == phone).first()
    if user:
        return user

    user = User(
        name=name,
        phone=phone,
        password_hash=None,
        role=UserRole.CUSTOMER.value,
    )
    db.add(user)
    db.flush()
    logger.info("Created messaging customer %d for %s", user.id, phone)
    return user


def create_order(
    db: Session,
    user_id: int,
    restaurant_id: int,
    total: float,
    delivery_address: Optional[str],
    notes: Optional[str],
    payment_method: str,
    lines: Iterable[Sequence],
    status: str = OrderStatus.PENDING.value,
    payment_status: str = PaymentStatus.PENDING.value,
) -> Order:
    """
    Persist an order with its line items.

    Args:
        db: Database session
        user_id: Customer placing the order
        restaurant_id: Restaurant receiving the order
        total: Order total as shown to the customer
        delivery_address: Free-text delivery location
        notes: Order notes
        payment_method: "COD", "UPI", ...
        lines: (menu_item_id, quantity, price) tuples; price is copied as-is

    Returns:
        The committed Order
    """
    order = Order(
        user_id=user_id,
        restaurant_id=restaurant_id,
        total=round(total, 2),
        delivery_address=delivery_address,
        notes=notes,
        status=status,
        payment_status=payment_status,
        payment_method=payment_method,
    )
    db.add(order)
    db.flush()

    for menu_item_id, quantity, price in lines:
        db.add(OrderItem(
            order_id=order.id,
            menu_item_id=menu_item_id,
            quantity=quantity,
            price=price,
        ))

    db.commit()
    db.refresh(order)

    logger.info(
        "Order %d created for user %d at restaurant %d (%s, total %.2f)",
        order.id, user_id, restaurant_id, payment_method, order.total,
    )
    return order


def get_order(db: Session, order_id: int) -> Optional[Order]:
    if not 0 < order_id <= MAX_ORDER_ID:
        return None
    return (
        db.query(Order)
        .options(joinedload(Order.items), joinedload(Order.restaurant), joinedload(Order.user))
        .filter(Order.id == order_id)
        .first()
    )


def list_active_orders(db: Session, restaurant_id: int) -> List[Order]:
    """Pending, confirmed and ready orders for a restaurant, newest first."""
    return (
        db.query(Order)
        .options(joinedload(Order.user))
        .filter(Order.restaurant_id == restaurant_id)
        .filter(Order.status.in_(ACTIVE_ORDER_STATUSES))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
