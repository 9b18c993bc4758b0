"""
Demo data for the food order bot.

Creates one restaurant owner with two restaurants and a small menu each,
so the WhatsApp flow has something to browse in a fresh database.

Usage:
    DATABASE_URL="sqlite:///./foodorder.db" python -m food_order_bot.seed
"""

import logging

from sqlalchemy.orm import Session

from .models import MenuItem, Restaurant, User, UserRole

logger = logging.getLogger(__name__)


DEMO_OWNER = {
    "name": "Demo Owner",
    "phone": "9000000001",
    "email": "owner@example.com",
}

DEMO_RESTAURANTS = [
    {
        "name": "Spice Garden",
        "address": "12 MG Road, Bengaluru",
        "phone": "9000000001",
        "menu": [
            ("Starters", "Paneer Tikka", 220.0, "Chargrilled cottage cheese"),
            ("Starters", "Chicken 65", 250.0, None),
            ("Biryanis", "Chicken Biryani", 250.0, "Hyderabadi dum biryani"),
            ("Biryanis", "Veg Biryani", 180.0, None),
            ("Beverages", "Sweet Lassi", 60.0, None),
        ],
    },
    {
        "name": "Dosa Corner",
        "address": "4 Temple Street, Chennai",
        "phone": "9000000001",
        "menu": [
            ("Dosas", "Masala Dosa", 90.0, "With sambar and chutney"),
            ("Dosas", "Onion Rava Dosa", 110.0, None),
            ("Beverages", "Filter Coffee", 40.0, None),
        ],
    },
]


def seed_demo_data(db: Session) -> bool:
    """
    Insert the demo owner, restaurants and menus.

    Does nothing if any restaurant already exists.

    Returns:
        True if data was inserted
    """
    existing = db.query(Restaurant).count()
    if existing > 0:
        logger.info("Restaurants table already has %d rows. Not seeding again.", existing)
        return False

    owner = db.query(User).filter(User.phone == DEMO_OWNER["phone"]).first()
    if owner is None:
        owner = User(role=UserRole.RESTAURANT_OWNER.value, **DEMO_OWNER)
        db.add(owner)
        db.flush()

    for demo in DEMO_RESTAURANTS:
        restaurant = Restaurant(
            name=demo["name"],
            address=demo["address"],
            phone=demo["phone"],
            owner_id=owner.id,
        )
        db.add(restaurant)
        db.flush()
        for category, name, price, description in demo["menu"]:
            db.add(MenuItem(
                restaurant_id=restaurant.id,
                name=name,
                category=category,
                price=price,
                description=description,
            ))

    db.commit()
    logger.info("Seeded %d demo restaurants for owner %s", len(DEMO_RESTAURANTS), owner.phone)
    return True


if __name__ == "__main__":
    from dotenv import load_dotenv
    load_dotenv()

    from .db import SessionLocal
    from .logging_config import setup_logging

    setup_logging()
    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
