"""
End-to-end tests for the customer ordering conversation.

Messages go through MessageProcessor exactly as the webhook sends them;
outbound replies are captured by the outbox fixture.
"""
import pytest

from conftest import CUSTOMER_PHONE, OWNER_PHONE, whatsapp_sender
from food_order_bot.conversation import messages
from food_order_bot.conversation.models import ConversationState
from food_order_bot.message_processor import InboundContext, MessageProcessor
from food_order_bot.models import Notification, Order, User, UserRole


@pytest.fixture
def processor(db_session, store):
    return MessageProcessor(db_session, store)


def send(processor, text, phone=CUSTOMER_PHONE):
    return processor.process(InboundContext(sender=whatsapp_sender(phone), body=text))


def start(processor):
    """Open the conversation and get to the restaurant list."""
    send(processor, "hi")
    send(processor, "Asha")
    return send(processor, "Koramangala")


def open_biryanis(processor):
    start(processor)
    send(processor, "1")  # Spice Garden
    send(processor, "1")  # View Menu
    return send(processor, "2")  # Biryanis


def replies_to(outbox, phone):
    return [body for to, body in outbox if to == phone]


class TestIdentification:

    def test_first_message_is_taken_as_name(self, processor, store, outbox):
        result = send(processor, "Asha")

        assert result.replies == [messages.OPENING_PROMPT, messages.name_accepted("Asha")]
        assert result.state == ConversationState.ASK_LOCATION
        assert store.get(CUSTOMER_PHONE).name == "Asha"

    def test_first_greeting_opens_conversation(self, processor, store, outbox):
        result = send(processor, "Hello")

        assert result.replies == [messages.OPENING_PROMPT, messages.GREETING_REPROMPT]
        assert result.state == ConversationState.ASK_NAME
        assert store.get(CUSTOMER_PHONE).name is None

    def test_greeting_is_not_taken_as_name(self, processor, store, outbox):
        send(processor, "hello")
        result = send(processor, "Hi")

        assert result.replies == [messages.GREETING_REPROMPT]
        assert store.get(CUSTOMER_PHONE).state == ConversationState.ASK_NAME

    def test_name_then_location_lists_restaurants(self, processor, store, outbox):
        send(processor, "hi")
        result = send(processor, "Asha")
        assert result.replies == [messages.name_accepted("Asha")]
        assert result.state == ConversationState.ASK_LOCATION

        result = send(processor, "Koramangala")
        assert result.state == ConversationState.RESTAURANT_SELECTION
        assert result.replies[0] == messages.location_accepted("Koramangala")
        assert "1. 🏪 Spice Garden" in result.replies[1]
        assert "2. 🏪 Pizza Palace" in result.replies[1]

        session = store.get(CUSTOMER_PHONE)
        assert session.name == "Asha"
        assert session.location == "Koramangala"
        assert [r.name for r in session.restaurants] == ["Spice Garden", "Pizza Palace"]

    def test_replies_are_sent_to_sender(self, processor, outbox):
        send(processor, "hi")
        assert outbox == [
            (CUSTOMER_PHONE, messages.OPENING_PROMPT),
            (CUSTOMER_PHONE, messages.GREETING_REPROMPT),
        ]

    def test_button_payload_is_used_as_text(self, processor, store, outbox):
        send(processor, "hi")
        processor.process(InboundContext(
            sender=whatsapp_sender(CUSTOMER_PHONE),
            body="ignored",
            button_payload="Asha",
        ))
        assert store.get(CUSTOMER_PHONE).name == "Asha"


class TestRestaurantSelection:

    def test_invalid_number_keeps_state(self, processor, store, outbox):
        start(processor)
        for text in ("9", "0", "abc"):
            result = send(processor, text)
            assert result.replies == [messages.INVALID_RESTAURANT]
        assert store.get(CUSTOMER_PHONE).state == ConversationState.RESTAURANT_SELECTION

    def test_non_ascii_digits_are_invalid(self, processor, store, outbox):
        start(processor)
        for text in ("²", "①", "1²"):
            result = send(processor, text)
            assert result.route == "customer"
            assert result.replies == [messages.INVALID_RESTAURANT]
        assert store.get(CUSTOMER_PHONE).state == ConversationState.RESTAURANT_SELECTION

    def test_selection_shows_restaurant_options(self, processor, store, outbox):
        start(processor)
        result = send(processor, "1")

        assert result.state == ConversationState.MENU_BROWSING
        assert result.replies[0].startswith("✅ Great choice! You selected:")
        assert "🏪 Spice Garden" in result.replies[0]
        assert "2. 🛒 View Cart (0 items)" in result.replies[0]
        assert store.get(CUSTOMER_PHONE).selected_restaurant.name == "Spice Garden"

    def test_no_restaurants_stays_at_welcome(self, processor, store, outbox, monkeypatch):
        import food_order_bot.services.catalog as catalog

        send(processor, "hi")
        send(processor, "Asha")
        with monkeypatch.context() as m:
            m.setattr(catalog, "list_restaurants", lambda db: [])
            result = send(processor, "Koramangala")
        assert result.replies[-1] == messages.NO_RESTAURANTS
        assert result.state == ConversationState.WELCOME

        # Any message at welcome lists restaurants again
        result = send(processor, "anything")
        assert result.state == ConversationState.RESTAURANT_SELECTION

    def test_invalid_menu_option(self, processor, outbox):
        start(processor)
        send(processor, "1")
        result = send(processor, "7")
        assert result.replies == [messages.MENU_OPTIONS_INVALID]
        assert result.state == ConversationState.MENU_BROWSING

    def test_change_restaurant_lists_again(self, processor, outbox):
        start(processor)
        send(processor, "1")
        result = send(processor, "3")
        assert result.state == ConversationState.RESTAURANT_SELECTION
        assert "Available Restaurants" in result.replies[0]

    def test_view_cart_when_empty(self, processor, outbox):
        start(processor)
        send(processor, "1")
        result = send(processor, "2")
        assert result.replies == [messages.CART_EMPTY]
        assert result.state == ConversationState.MENU_BROWSING


class TestMenuBrowsing:

    def test_categories_in_menu_order(self, processor, store, outbox):
        start(processor)
        send(processor, "1")
        result = send(processor, "1")

        assert result.state == ConversationState.CATEGORY_SELECTION
        reply = result.replies[0]
        assert reply.startswith("📋 Spice Garden Menu Categories:")
        assert "1. 🥤 Beverages" in reply
        assert "2. 🍛 Biryanis" in reply
        assert "3. 🔥 Starters" in reply
        assert "0. ⬅️ Back to Restaurant Options" in reply

    def test_category_lists_only_available_items(self, processor, store, outbox):
        result = open_biryanis(processor)

        assert result.state == ConversationState.ITEM_SELECTION
        reply = result.replies[0]
        assert "1. Chicken Biryani" in reply
        assert "💰 ₹250" in reply
        assert "2. Veg Biryani" in reply
        assert "Mutton Biryani" not in reply
        assert [i.name for i in store.get(CUSTOMER_PHONE).current_category_items] == [
            "Chicken Biryani", "Veg Biryani",
        ]

    def test_description_is_truncated(self, processor, outbox):
        start(processor)
        send(processor, "1")
        send(processor, "1")
        result = send(processor, "3")  # Starters
        assert "📝 Chargrilled cottage cheese..." in result.replies[0]

    def test_back_from_categories_shows_options_without_greeting(self, processor, outbox):
        start(processor)
        send(processor, "1")
        send(processor, "1")
        result = send(processor, "0")

        assert result.state == ConversationState.MENU_BROWSING
        assert result.replies[0].startswith("🏪 Spice Garden")
        assert "Great choice" not in result.replies[0]

    def test_back_from_items_shows_categories(self, processor, outbox):
        open_biryanis(processor)
        result = send(processor, "0")
        assert result.state == ConversationState.CATEGORY_SELECTION
        assert "Menu Categories" in result.replies[0]

    def test_invalid_category_and_item(self, processor, outbox):
        start(processor)
        send(processor, "1")
        send(processor, "1")
        assert send(processor, "4").replies == [messages.INVALID_CATEGORY]

        send(processor, "2")
        result = send(processor, "3")
        assert result.replies == [messages.INVALID_ITEM]
        assert result.state == ConversationState.ITEM_SELECTION


class TestCart:

    def test_add_item(self, processor, store, outbox):
        open_biryanis(processor)
        result = send(processor, "1")

        assert result.state == ConversationState.CART_MANAGEMENT
        reply = result.replies[0]
        assert reply.startswith("✅ Added to cart!")
        assert "🛒 Current Cart: 1 items" in reply
        assert "💵 Total: ₹250" in reply

    def test_adding_again_merges_quantity(self, processor, store, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "1")  # Add more items
        send(processor, "2")  # Biryanis
        result = send(processor, "1")

        cart = store.get(CUSTOMER_PHONE).cart
        assert len(cart) == 1
        assert cart[0].quantity == 2
        assert "💵 Total: ₹500" in result.replies[0]

    def test_view_cart(self, processor, outbox):
        open_biryanis(processor)
        send(processor, "2")  # Veg Biryani
        result = send(processor, "2")

        assert result.state == ConversationState.CART_VIEW
        assert "1. Veg Biryani" in result.replies[0]
        assert "💰 ₹180 x 1 = ₹180" in result.replies[0]
        assert "4. 🗑️ Clear cart" in result.replies[0]

    def test_delete_item(self, processor, store, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "1")
        send(processor, "2")
        send(processor, "2")  # Veg Biryani as a second line
        result = send(processor, "3")
        assert result.state == ConversationState.DELETE_ITEM_SELECTION

        result = send(processor, "1")
        assert result.state == ConversationState.CART_MANAGEMENT
        assert "❌ Chicken Biryani (₹250 x 1)" in result.replies[0]
        assert "🛒 Remaining items: 1" in result.replies[0]
        assert [line.name for line in store.get(CUSTOMER_PHONE).cart] == ["Veg Biryani"]

    def test_deleting_last_item_returns_to_menu_browsing(self, processor, store, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "3")
        result = send(processor, "1")

        assert result.state == ConversationState.MENU_BROWSING
        assert "🛒 Your cart is now empty!" in result.replies[0]
        assert store.get(CUSTOMER_PHONE).cart == []

    def test_invalid_delete_keeps_state(self, processor, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "3")
        result = send(processor, "5")
        assert result.replies == [messages.INVALID_DELETE]
        assert result.state == ConversationState.DELETE_ITEM_SELECTION

    def test_back_from_delete_shows_cart(self, processor, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "3")
        result = send(processor, "0")
        assert result.state == ConversationState.CART_VIEW

    def test_clear_cart(self, processor, store, outbox):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "2")  # View Cart
        result = send(processor, "4")

        assert result.replies == [messages.CART_CLEARED]
        assert result.state == ConversationState.MENU_BROWSING
        assert store.get(CUSTOMER_PHONE).cart == []

    def test_invalid_cart_option(self, processor, outbox):
        open_biryanis(processor)
        send(processor, "1")
        result = send(processor, "9")
        assert result.replies == [messages.CART_OPTIONS_INVALID]
        assert result.state == ConversationState.CART_MANAGEMENT


class TestCheckout:

    def _checkout(self, processor):
        open_biryanis(processor)
        send(processor, "1")
        send(processor, "1")
        send(processor, "2")
        send(processor, "1")  # Chicken Biryani x2
        return send(processor, "4")

    def test_summary_snapshots_total(self, processor, store, outbox):
        result = self._checkout(processor)

        assert result.state == ConversationState.PAYMENT_SELECTION
        reply = result.replies[0]
        assert "🏪 Restaurant: Spice Garden" in reply
        assert "• Chicken Biryani x2 - ₹500" in reply
        assert "💰 Total Amount: ₹500" in reply
        assert store.get(CUSTOMER_PHONE).total == 500.0

    def test_cod_order_is_placed(self, processor, store, outbox, db_session, seeded):
        self._checkout(processor)
        result = send(processor, "1")

        assert result.route == "customer"
        assert result.state == ConversationState.WELCOME
        assert result.replies == [messages.cod_confirmation(500.0, "Koramangala")]

        order = db_session.query(Order).one()
        assert order.total == 500.0
        assert order.status == "pending"
        assert order.payment_status == "pending"
        assert order.payment_method == "COD"
        assert order.delivery_address == "Koramangala"
        assert order.notes == f"Order placed via WhatsApp by Asha ({CUSTOMER_PHONE})"
        assert order.restaurant_id == seeded["restaurant_id"]
        assert len(order.items) == 1
        assert order.items[0].quantity == 2
        assert order.items[0].price == 250.0

        customer = db_session.query(User).filter(User.phone == CUSTOMER_PHONE).one()
        assert customer.role == UserRole.CUSTOMER.value
        assert customer.password_hash is None
        assert order.user_id == customer.id

        session = store.get(CUSTOMER_PHONE)
        assert session.cart == []
        assert session.total == 0.0

    def test_owner_is_alerted(self, processor, outbox, db_session, seeded):
        self._checkout(processor)
        result = send(processor, "1")
        order = db_session.query(Order).one()

        alerts = replies_to(outbox, OWNER_PHONE)
        assert len(alerts) == 1
        assert alerts[0].startswith("🚨 NEW ORDER ALERT! 🚨")
        assert f"📋 Order #{order.id}" in alerts[0]
        assert "👤 Customer: Asha" in alerts[0]
        assert f"Reply 'ACCEPT {order.id}' to accept" in alerts[0]
        assert result.notifications_sent == 1

        notification = db_session.query(Notification).one()
        assert notification.type == "order_placed"
        assert notification.user_id == seeded["owner_id"]
        assert notification.order_id == order.id

    def test_upi_order_shows_payment_id(self, processor, outbox, db_session):
        self._checkout(processor)
        result = send(processor, "2")

        assert "📱 Payment Method: UPI" in result.replies[0]
        assert "foodorder@upi" in result.replies[0]
        assert db_session.query(Order).one().payment_method == "UPI"

    def test_invalid_payment_option(self, processor, outbox, db_session):
        self._checkout(processor)
        result = send(processor, "3")

        assert result.replies == [messages.INVALID_PAYMENT]
        assert result.state == ConversationState.PAYMENT_SELECTION
        assert db_session.query(Order).count() == 0

    def test_next_message_after_order_starts_new_round(self, processor, outbox):
        self._checkout(processor)
        send(processor, "1")
        result = send(processor, "hello")
        assert result.state == ConversationState.RESTAURANT_SELECTION

    def test_order_failure_keeps_payment_selection(self, processor, store, outbox, db_session, monkeypatch):
        import food_order_bot.conversation.flow as flow

        self._checkout(processor)

        def broken_create_order(*args, **kwargs):
            raise RuntimeError("database is down")

        monkeypatch.setattr(flow, "create_order", broken_create_order)
        result = send(processor, "1")

        assert result.route == "error"
        assert result.replies == [messages.ORDER_FAILED]
        assert store.get(CUSTOMER_PHONE).state == ConversationState.PAYMENT_SELECTION
        assert len(store.get(CUSTOMER_PHONE).cart) == 1
        assert db_session.query(Order).count() == 0

    def test_owner_lookup_failure_places_no_order(self, processor, store, outbox, db_session, monkeypatch):
        self._checkout(processor)
        real_get = db_session.get

        def broken_get(entity, ident, **kwargs):
            if entity is User:
                raise RuntimeError("database is down")
            return real_get(entity, ident, **kwargs)

        monkeypatch.setattr(db_session, "get", broken_get)
        result = send(processor, "1")

        assert result.replies == [messages.ORDER_FAILED]
        assert db_session.query(Order).count() == 0
        assert store.get(CUSTOMER_PHONE).state == ConversationState.PAYMENT_SELECTION

        # The retry places exactly one order
        monkeypatch.undo()
        assert send(processor, "1").state == ConversationState.WELCOME
        assert db_session.query(Order).count() == 1


class TestErrors:

    def test_unexpected_error_sends_generic_apology(self, processor, store, outbox, monkeypatch):
        import food_order_bot.services.catalog as catalog

        send(processor, "hi")
        send(processor, "Asha")

        def broken(db):
            raise RuntimeError("boom")

        monkeypatch.setattr(catalog, "list_restaurants", broken)
        result = send(processor, "Koramangala")

        assert result.route == "error"
        assert result.replies == [messages.GENERIC_ERROR]
        # Session was not saved, the customer can retry the same step
        assert store.get(CUSTOMER_PHONE).state == ConversationState.ASK_LOCATION


def test_hello_to_cod_order_with_first_choices(processor, store, outbox, db_session, seeded):
    result = send(processor, "Hello")
    assert result.state == ConversationState.ASK_NAME
    assert store.get(CUSTOMER_PHONE).name is None

    assert send(processor, "Asha").state == ConversationState.ASK_LOCATION
    assert send(processor, "Pune").state == ConversationState.RESTAURANT_SELECTION

    result = send(processor, "1")
    assert result.state == ConversationState.MENU_BROWSING
    assert store.get(CUSTOMER_PHONE).selected_restaurant == store.get(CUSTOMER_PHONE).restaurants[0]

    result = send(processor, "2")
    assert result.replies == [messages.CART_EMPTY]
    assert result.state == ConversationState.MENU_BROWSING

    send(processor, "1")  # view menu
    send(processor, "1")  # first category (Beverages)
    result = send(processor, "1")  # first item (Sweet Lassi)
    assert result.state == ConversationState.CART_MANAGEMENT

    assert send(processor, "4").state == ConversationState.PAYMENT_SELECTION
    assert send(processor, "1").state == ConversationState.WELCOME

    order = db_session.query(Order).one()
    assert len(order.items) == 1
    assert order.items[0].menu_item_id == seeded["menu"]["Sweet Lassi"]
    assert order.total == 60.0
    assert (order.status, order.payment_status, order.payment_method) == ("pending", "pending", "COD")
