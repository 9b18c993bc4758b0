"""
Pydantic models for the conversational ordering session.

A session is keyed by the customer's phone key and carries everything the
handlers need between messages. Restaurant and menu data are snapshots taken
when the customer selects them; they are never re-fetched mid-session, so a
price edit on the dashboard does not change what is already in a cart.
"""

from enum import Enum
from pydantic import BaseModel, Field


class ConversationState(str, Enum):
    """Stages of the ordering dialogue."""
    ASK_NAME = "ask_name"
    ASK_LOCATION = "ask_location"
    WELCOME = "welcome"  # re-entrant hub, lists restaurants
    RESTAURANT_SELECTION = "restaurant_selection"
    MENU_BROWSING = "menu_browsing"
    CATEGORY_SELECTION = "category_selection"
    ITEM_SELECTION = "item_selection"
    CART_MANAGEMENT = "cart_management"  # options shown after an add or delete
    CART_VIEW = "cart_view"  # options shown under the cart listing
    DELETE_ITEM_SELECTION = "delete_item_selection"
    PAYMENT_SELECTION = "payment_selection"


class RestaurantSnapshot(BaseModel):
    id: int
    name: str
    address: str | None = None
    phone: str | None = None
    owner_id: int


class MenuItemSnapshot(BaseModel):
    id: int
    name: str
    category: str
    price: float
    description: str | None = None


class CartLine(BaseModel):
    menu_item_id: int
    name: str
    price: float
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class ConversationSession(BaseModel):
    """Per-phone conversation state."""

    state: ConversationState = ConversationState.ASK_NAME
    name: str | None = None
    location: str | None = None
    selected_restaurant: RestaurantSnapshot | None = None
    restaurants: list[RestaurantSnapshot] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    menu_items: list[MenuItemSnapshot] = Field(default_factory=list)
    current_category_items: list[MenuItemSnapshot] = Field(default_factory=list)
    cart: list[CartLine] = Field(default_factory=list)
    total: float = 0.0  # snapshotted when checkout starts

    def cart_total(self) -> float:
        return round(sum(line.price * line.quantity for line in self.cart), 2)

    def add_to_cart(self, item: MenuItemSnapshot) -> CartLine:
        """Add one unit of item, merging with an existing line for the same menu item."""
        for line in self.cart:
            if line.menu_item_id == item.id:
                line.quantity += 1
                return line
        line = CartLine(menu_item_id=item.id, name=item.name, price=item.price)
        self.cart.append(line)
        return line

    def remove_cart_line(self, index: int) -> CartLine:
        """Remove and return the cart line at a 0-based index."""
        return self.cart.pop(index)

    def items_in_category(self, category: str) -> list[MenuItemSnapshot]:
        return [item for item in self.menu_items if item.category == category]
