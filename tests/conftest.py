import os

# db.py refuses to import without a DATABASE_URL; tests swap in their own engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import food_order_bot.config as config_mod
import food_order_bot.db as db
import food_order_bot.messaging as messaging
from food_order_bot.main import app
from food_order_bot.models import Base, MenuItem, Restaurant, User, UserRole
from food_order_bot.routes import limiter
from food_order_bot.services.order import create_order, find_or_create_customer
from food_order_bot.services.session import InMemorySessionStore, get_session_store

# Test admin credentials
TEST_ADMIN_USERNAME = "testadmin"
TEST_ADMIN_PASSWORD = "testpassword123"

OWNER_PHONE = "9000000001"
OTHER_OWNER_PHONE = "9000000002"
CUSTOMER_PHONE = "9876543210"


def whatsapp_sender(phone: str) -> str:
    return f"whatsapp:+91{phone}"


@pytest.fixture(autouse=True)
def simulated_transport(monkeypatch):
    """Never talk to Twilio from tests."""
    monkeypatch.setattr(config_mod, "TWILIO_ACCOUNT_SID", "")
    monkeypatch.setattr(config_mod, "TWILIO_AUTH_TOKEN", "")


@pytest.fixture
def session_factory(monkeypatch):
    """In-memory SQLite shared across connections via StaticPool."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the db module used by the app
    monkeypatch.setattr(db, "engine", engine)
    monkeypatch.setattr(db, "SessionLocal", TestingSessionLocal)

    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def seeded(session_factory):
    """
    Two owners, each with one restaurant.

    Spice Garden is created last, so it is listed first (newest first).
    Its categories sort as Beverages, Biryanis, Starters.
    """
    session = session_factory()

    owner = User(name="Ravi Kumar", phone=OWNER_PHONE, role=UserRole.RESTAURANT_OWNER.value)
    other_owner = User(name="Meera Shah", phone=OTHER_OWNER_PHONE, role=UserRole.RESTAURANT_OWNER.value)
    session.add_all([owner, other_owner])
    session.flush()

    pizza = Restaurant(name="Pizza Palace", address="8 Brigade Road", phone=OTHER_OWNER_PHONE, owner_id=other_owner.id)
    session.add(pizza)
    session.flush()
    session.add(MenuItem(restaurant_id=pizza.id, name="Margherita", category="Pizza", price=300.0))

    spice = Restaurant(name="Spice Garden", address="12 MG Road", phone=OWNER_PHONE, owner_id=owner.id)
    session.add(spice)
    session.flush()

    menu = [
        MenuItem(restaurant_id=spice.id, name="Paneer Tikka", category="Starters", price=220.0,
                 description="Chargrilled cottage cheese"),
        MenuItem(restaurant_id=spice.id, name="Chicken Biryani", category="Biryanis", price=250.0),
        MenuItem(restaurant_id=spice.id, name="Veg Biryani", category="Biryanis", price=180.0),
        MenuItem(restaurant_id=spice.id, name="Mutton Biryani", category="Biryanis", price=320.0,
                 is_available=False),
        MenuItem(restaurant_id=spice.id, name="Sweet Lassi", category="Beverages", price=60.0),
    ]
    session.add_all(menu)
    session.commit()

    data = {
        "owner_id": owner.id,
        "other_owner_id": other_owner.id,
        "restaurant_id": spice.id,
        "other_restaurant_id": pizza.id,
        "menu": {item.name: item.id for item in menu},
    }
    session.close()
    return data


@pytest.fixture
def db_session(session_factory, seeded):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def outbox(monkeypatch):
    """Captures (phone, body) for every outbound WhatsApp message."""
    sent = []

    def fake_send(phone, body):
        sent.append((phone, body))
        return {"status": "simulated", "sid": f"sim_{len(sent)}", "to": phone, "body": body, "mock": True}

    monkeypatch.setattr(messaging, "send_whatsapp_message", fake_send)
    return sent


@pytest.fixture
def make_order(db_session, seeded):
    """Factory for orders placed by the test customer at Spice Garden."""
    def _make(
        status="pending",
        payment_status="pending",
        payment_method="UPI",
        restaurant_id=None,
        phone=CUSTOMER_PHONE,
        total=250.0,
    ):
        customer = find_or_create_customer(db_session, phone, "Asha")
        return create_order(
            db_session,
            user_id=customer.id,
            restaurant_id=restaurant_id or seeded["restaurant_id"],
            total=total,
            delivery_address="Koramangala",
            notes=None,
            payment_method=payment_method,
            lines=[(seeded["menu"]["Chicken Biryani"], 1, 250.0)],
            status=status,
            payment_status=payment_status,
        )
    return _make


@pytest.fixture
def client(session_factory, seeded, store, monkeypatch):
    """Shared FastAPI TestClient using the in-memory DB and a fresh session store."""
    monkeypatch.setattr(config_mod, "ADMIN_USERNAME", TEST_ADMIN_USERNAME)
    monkeypatch.setattr(config_mod, "ADMIN_PASSWORD", TEST_ADMIN_PASSWORD)

    def override_get_db():
        db_sess = session_factory()
        try:
            yield db_sess
        finally:
            db_sess.close()

    app.dependency_overrides[db.get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: store

    limiter.enabled = False
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_auth():
    """Returns HTTP Basic Auth tuple for admin endpoints."""
    return (TEST_ADMIN_USERNAME, TEST_ADMIN_PASSWORD)
