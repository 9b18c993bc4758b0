"""
Text templates for the customer ordering conversation.

All user-facing selection lists are 1-based. Prices are shown with
format_money(), which drops a trailing ".0" so 250.0 reads "₹250".
"""

from typing import List

from ..config import CURRENCY_SYMBOL, UPI_PAYMENT_ID
from .models import CartLine, ConversationSession, MenuItemSnapshot, RestaurantSnapshot


GREETING_TOKENS = frozenset({
    "hi", "hello", "hey", "hii", "hai", "yo", "hola", "namaste", "greetings",
})

CATEGORY_ICONS = {
    "Biryanis": "🍛",
    "Starters": "🔥",
    "Main Course": "🍽️",
    "Beverages": "🥤",
    "Cool Drinks": "🥤",
    "Desserts": "🍮",
    "Pizza": "🍕",
    "Burgers": "🍔",
    "Hot Starters": "🔥",
    "Veg Starters": "🥗",
    "Breads": "🍞",
}
DEFAULT_CATEGORY_ICON = "🍴"

OPENING_PROMPT = "👋 Hello! Welcome to Food Ordering!\n\nPlease tell me your name to get started:"
GREETING_REPROMPT = "👋 Welcome! Please tell me your full name to get started:"
NO_RESTAURANTS = "😔 Sorry, no restaurants are available at the moment. Please try again later."
INVALID_RESTAURANT = "❌ Invalid restaurant number. Please choose a valid option (1, 2, 3...)"
MENU_OPTIONS_INVALID = "❌ Please reply with 1, 2, or 3"
CART_EMPTY = "🛒 Your cart is empty! Reply with '1' to browse menu."
NO_MENU_ITEMS = "😔 Sorry, this restaurant doesn't have any menu items available right now."
INVALID_CATEGORY = "❌ Invalid category number. Please choose a valid option."
INVALID_ITEM = "❌ Invalid item number. Please choose a valid option."
CART_OPTIONS_INVALID = "❌ Please reply with 1, 2, 3, or 4"
INVALID_DELETE = "❌ Invalid item number. Please choose a valid option from the list above."
CART_CLEARED = "🗑️ Cart cleared! Reply with '1' to browse menu and add items."
CHECKOUT_EMPTY = "🛒 Your cart is empty! Add some items first."
INVALID_PAYMENT = "❌ Invalid option. Please reply with 1 for COD or 2 for UPI payment."
MISSING_DETAILS = "❌ Missing user details. Please start over."
NO_RESTAURANT_SELECTED = "❌ Please choose a restaurant first."
GENERIC_ERROR = "❌ Sorry, something went wrong. Please try again."
ORDER_FAILED = "❌ Sorry, there was an error processing your payment. Please try again."


def format_money(amount: float) -> str:
    text = f"{amount:.2f}".rstrip("0").rstrip(".")
    return f"{CURRENCY_SYMBOL}{text}"


def category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, DEFAULT_CATEGORY_ICON)


def name_accepted(name: str) -> str:
    return f"Thanks {name}! Please share your current location to help us find restaurants near you:"


def location_accepted(location: str) -> str:
    return f"Great! Now please choose a restaurant near {location}:"


def restaurant_list(restaurants: List[RestaurantSnapshot]) -> str:
    text = "🍽️ Welcome to Food Ordering! 🛍️\n\n"
    text += "Available Restaurants:\n\n"
    for index, restaurant in enumerate(restaurants, start=1):
        text += f"{index}. 🏪 {restaurant.name}\n"
        text += f"   📍 {restaurant.address or 'Address not available'}\n"
        text += f"   📞 {restaurant.phone or 'Phone not available'}\n\n"
    text += "Reply with restaurant number (1, 2, 3...) to start ordering! 🛒"
    return text


def restaurant_options(restaurant: RestaurantSnapshot, cart_size: int, selected: bool = True) -> str:
    text = "✅ Great choice! You selected:\n\n" if selected else ""
    text += f"🏪 {restaurant.name}\n"
    text += f"📍 {restaurant.address or 'Address not available'}\n\n"
    text += "What would you like to do?\n\n"
    text += "1. 📋 View Menu\n"
    text += f"2. 🛒 View Cart ({cart_size} items)\n"
    text += "3. 🏪 Change Restaurant\n\n"
    text += "Reply with option number:"
    return text


def menu_categories(restaurant_name: str, categories: List[str]) -> str:
    text = f"📋 {restaurant_name} Menu Categories:\n\n"
    for index, category in enumerate(categories, start=1):
        text += f"{index}. {category_icon(category)} {category}\n"
    text += "\n0. ⬅️ Back to Restaurant Options\n\n"
    text += "Reply with category number:"
    return text


def category_items(category: str, items: List[MenuItemSnapshot]) -> str:
    text = f"{category_icon(category)} {category} Menu:\n\n"
    for index, item in enumerate(items, start=1):
        text += f"{index}. {item.name}\n"
        text += f"   💰 {format_money(item.price)}\n"
        if item.description:
            text += f"   📝 {item.description[:50]}...\n"
        text += "\n"
    text += "0. ⬅️ Back to Categories\n\n"
    text += "Reply with item number to add to cart:"
    return text


def _cart_lines(cart: List[CartLine]) -> str:
    text = ""
    for index, line in enumerate(cart, start=1):
        text += f"{index}. {line.name}\n"
        text += (
            f"   💰 {format_money(line.price)} x {line.quantity} = "
            f"{format_money(line.line_total)}\n\n"
        )
    return text


def item_added(item: MenuItemSnapshot, session: ConversationSession) -> str:
    text = "✅ Added to cart!\n\n"
    text += f"🍽️ {item.name}\n"
    text += f"💰 {format_money(item.price)}\n\n"
    text += f"🛒 Current Cart: {len(session.cart)} items\n"
    text += f"💵 Total: {format_money(session.cart_total())}\n\n"
    text += "What's next?\n"
    text += "1. ➕ Add more items\n"
    text += "2. 🛒 View Cart\n"
    text += "3. 🗑️ Delete Item\n"
    text += "4. ✅ Checkout\n\n"
    text += "Reply with option number:"
    return text


def cart_view(session: ConversationSession) -> str:
    text = "🛒 Your Cart:\n\n"
    text += _cart_lines(session.cart)
    text += f"💵 Total: {format_money(session.cart_total())}\n\n"
    text += "Options:\n"
    text += "1. ➕ Add more items\n"
    text += "2. ✅ Checkout\n"
    text += "3. 🗑️ Delete item\n"
    text += "4. 🗑️ Clear cart\n\n"
    text += "Reply with option number:"
    return text


def cart_deletion_list(session: ConversationSession) -> str:
    text = "🗑️ Delete Item from Cart:\n\n"
    text += _cart_lines(session.cart)
    text += "Reply with the item number to delete (1, 2, 3...):\n"
    text += "Or reply '0' to go back to cart options."
    return text


def item_removed(line: CartLine, session: ConversationSession) -> str:
    text = "🗑️ Item removed from cart!\n\n"
    text += f"❌ {line.name} ({format_money(line.price)} x {line.quantity})\n\n"
    if session.cart:
        text += f"🛒 Remaining items: {len(session.cart)}\n"
        text += f"💵 New total: {format_money(session.cart_total())}\n\n"
        text += "What would you like to do?\n"
        text += "1. ➕ Add more items\n"
        text += "2. 🛒 View Cart\n"
        text += "3. 🗑️ Delete another item\n"
        text += "4. ✅ Checkout\n\n"
        text += "Reply with option number:"
    else:
        text += "🛒 Your cart is now empty!\n\n"
        text += "Reply with '1' to browse menu and add items."
    return text


def checkout_summary(session: ConversationSession) -> str:
    restaurant = session.selected_restaurant
    text = "🧾 Order Summary:\n\n"
    text += f"🏪 Restaurant: {restaurant.name}\n"
    text += f"📍 Address: {restaurant.address or 'Address not available'}\n\n"
    text += "🛒 Your Items:\n"
    for line in session.cart:
        text += f"• {line.name} x{line.quantity} - {format_money(line.line_total)}\n"
    text += f"\n💰 Total Amount: {format_money(session.total)}\n\n"
    text += "Please choose payment method:\n\n"
    text += "1. 💵 Cash on Delivery (COD)\n"
    text += "2. 📱 UPI Payment\n\n"
    text += "Reply with option number (1 or 2):"
    return text


def cod_confirmation(total: float, location: str) -> str:
    text = "✅ Order placed successfully!\n\n"
    text += f"💰 Total Amount: {format_money(total)}\n"
    text += "💵 Payment Method: Cash on Delivery\n\n"
    text += f"🏠 Delivery Address: {location}\n\n"
    text += "Thank you for ordering with us. 🙏\n"
    text += "Your order will be delivered soon."
    return text


def upi_confirmation(total: float, location: str) -> str:
    text = "✅ Order placed successfully!\n\n"
    text += f"💰 Total Amount: {format_money(total)}\n"
    text += "📱 Payment Method: UPI\n\n"
    text += "Please pay using this UPI ID:\n"
    text += f"{UPI_PAYMENT_ID} 📱\n\n"
    text += f"🏠 Delivery Address: {location}\n\n"
    text += "Once payment is confirmed, your order will be processed."
    return text


def order_notes(name: str, phone: str) -> str:
    return f"Order placed via WhatsApp by {name} ({phone})"


def owner_new_order_alert(
    order_id: int,
    restaurant: RestaurantSnapshot,
    customer_name: str,
    customer_phone: str,
    cart: List[CartLine],
    total: float,
) -> str:
    text = "🚨 NEW ORDER ALERT! 🚨\n\n"
    text += f"📋 Order #{order_id}\n"
    text += f"🏪 {restaurant.name}\n"
    text += f"👤 Customer: {customer_name}\n"
    text += f"📞 Phone: {customer_phone}\n\n"
    text += "🛒 Items:\n"
    for line in cart:
        text += f"• {line.name} x{line.quantity}\n"
    text += f"\n💵 Total: {format_money(total)}\n\n"
    text += "⏰ Order Management Commands:\n"
    text += f"• Reply 'ACCEPT {order_id}' to accept\n"
    text += f"• Reply 'REJECT {order_id}' to reject\n"
    text += "• Reply 'ORDERS' to see all pending orders\n\n"
    text += "💡 After accepting: READY → PAID → DELIVERED"
    return text


def owner_new_order_notification(order_id: int, customer_name: str, total: float) -> str:
    return f"Order #{order_id} has been placed by {customer_name} ({format_money(total)})"
