"""
Restaurant and menu lookups used by the ordering conversation.

Results are converted to session snapshots here so the conversation layer
never holds ORM objects between messages.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..conversation.models import MenuItemSnapshot, RestaurantSnapshot
from ..models import MenuItem, Restaurant, User


logger = logging.getLogger(__name__)


def list_restaurants(db: Session) -> List[RestaurantSnapshot]:
    """All restaurants, newest first."""
    restaurants = db.query(Restaurant).order_by(Restaurant.created_at.desc(), Restaurant.id.desc()).all()
    return [
        RestaurantSnapshot(
            id=r.id,
            name=r.name,
            address=r.address,
            phone=r.phone,
            owner_id=r.owner_id,
        )
        for r in restaurants
    ]


def list_available_menu_items(db: Session, restaurant_id: int) -> List[MenuItemSnapshot]:
    """Available menu items for a restaurant, grouped by category then name."""
    items = (
        db.query(MenuItem)
        .filter(MenuItem.restaurant_id == restaurant_id)
        .filter(MenuItem.is_available == True)  # noqa: E712
        .order_by(MenuItem.category, MenuItem.name)
        .all()
    )
    logger.debug("Found %d menu items for restaurant %d", len(items), restaurant_id)
    return [
        MenuItemSnapshot(
            id=item.id,
            name=item.name,
            category=item.category,
            price=item.price,
            description=item.description,
        )
        for item in items
    ]


def categories_in_order(items: List[MenuItemSnapshot]) -> List[str]:
    """Distinct categories in first-seen order."""
    seen: List[str] = []
    for item in items:
        if item.category not in seen:
            seen.append(item.category)
    return seen


def find_user_by_phone(db: Session, phone: str) -> Optional[User]:
    return db.query(User).filter(User.phone == phone).first()


def get_owner_restaurant(db: Session, owner_id: int) -> Optional[Restaurant]:
    """The operator's restaurant. Owners are assumed to run one restaurant."""
    return (
        db.query(Restaurant)
        .filter(Restaurant.owner_id == owner_id)
        .order_by(Restaurant.id)
        .first()
    )
