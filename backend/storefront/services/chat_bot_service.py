"""
Chat Bot Service
WhatsApp channel adapter: inbound event -> cart / checkout -> outbound reply

Flow:
- "hi"            -> welcome menu (View Catalog, View Cart)
- View Catalog    -> product list from the catalog
- product tapped  -> add to cart, offer checkout
- Checkout        -> CheckoutService, confirmation or polite rejection

Replies are built here as TextReply / ButtonMenuReply / ProductListReply;
WhatsAppConnector renders them to the Cloud API format.

Author: TM3
Date: 2025-11-28
"""
import logging
import re
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.database import Database
from storefront.domain.errors import InsufficientStock, ProductNotFound, StorageFailure
from storefront.domain.messages import (
    Button,
    ButtonMenuReply,
    ButtonReply,
    CatalogItemSelected,
    CatalogOrder,
    ProductListReply,
    TextMessage,
    TextReply,
)
from storefront.repositories.product_repository import ProductRepository
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

# Button ids
VIEW_CATALOG = "view_catalog"
VIEW_CART = "view_cart"
CHECKOUT = "checkout"
CLEAR_CART = "clear_cart"

GREETINGS = {"hi", "hello", "hey", "hola", "menu", "start"}

# WhatsApp product_list messages accept at most 30 items
MAX_CATALOG_ITEMS = 30


class ChatBotService:
    """
    Stateless translator between chat events and the store core

    All state lives in the cart table; the bot itself can be shared by
    every request.
    """

    def __init__(
        self,
        database: Database,
        cart_service: CartService,
        checkout_service: CheckoutService,
        currency_symbol: str = "₹",
        payment_method: str = "Cash on Delivery",
    ):
        self.database = database
        self.carts = cart_service
        self.checkout_service = checkout_service
        self.currency_symbol = currency_symbol
        self.payment_method = payment_method

    def handle(self, event) -> Optional[object]:
        """
        Process one inbound event

        Returns:
            The reply to send back, or None when the event needs no answer
        """
        if isinstance(event, TextMessage):
            return self._on_text(event)
        if isinstance(event, ButtonReply):
            return self._on_button(event)
        if isinstance(event, CatalogItemSelected):
            return self._on_catalog_item(event)
        if isinstance(event, CatalogOrder):
            return self._on_catalog_order(event)

        logger.debug(f"Ignoring unsupported event: {event!r}")
        return None

    # ========================================================================
    # Text
    # ========================================================================

    def _on_text(self, event: TextMessage):
        words = set(re.findall(r"[a-z]+", event.text.lower()))

        if words & GREETINGS:
            return self._welcome()
        if "cart" in words:
            return self._cart_summary(event.sender)

        return TextReply(body="Sorry, I didn't understand that. Please type 'hi' to start.")

    def _welcome(self) -> ButtonMenuReply:
        return ButtonMenuReply(
            body="Hello! Welcome to our store. How can I help you?",
            buttons=[
                Button(id=VIEW_CATALOG, title="View Catalog"),
                Button(id=VIEW_CART, title="View Cart"),
            ],
        )

    # ========================================================================
    # Buttons
    # ========================================================================

    def _on_button(self, event: ButtonReply):
        if event.button_id == VIEW_CATALOG:
            return self._catalog()
        if event.button_id == VIEW_CART:
            return self._cart_summary(event.sender)
        if event.button_id == CLEAR_CART:
            self.carts.clear(event.sender)
            return TextReply(body="Your cart has been cleared. Type 'hi' to start again.")
        if event.button_id == CHECKOUT:
            return self._checkout(event.sender)

        logger.warning(f"Unknown button id from {event.sender}: {event.button_id}")
        return TextReply(body="Sorry, I didn't understand that. Please type 'hi' to start.")

    def _catalog(self):
        with self.database.session() as session:
            products, _ = ProductRepository(session).find_all(in_stock=True, limit=MAX_CATALOG_ITEMS)

        if not products:
            return TextReply(body="Sorry, our catalog is empty right now. Please check back later.")

        return ProductListReply(
            header="Our Delicious Menu",
            body="Select your favorite items to add to cart.",
            retailer_ids=[p.sku for p in products],
            footer=f"We offer {self.payment_method}.",
        )

    def _cart_summary(self, sender: str):
        entries = self.carts.get_cart(sender)
        if not entries:
            return TextReply(body="Your cart is empty. Type 'hi' and tap View Catalog to add items.")

        lines: List[str] = []
        total = Decimal("0")
        for entry in entries:
            lines.append(f"{entry.quantity} x {entry.name or 'Unavailable item'} - {self._money(entry.line_total)}")
            total += entry.line_total

        body = "Your cart:\n" + "\n".join(lines) + f"\n\nEstimated total: {self._money(total)}"
        return ButtonMenuReply(
            body=body,
            buttons=[
                Button(id=CHECKOUT, title="Proceed to Checkout"),
                Button(id=CLEAR_CART, title="Clear Cart"),
            ],
        )

    def _checkout(self, sender: str):
        request = self.carts.to_checkout_request(sender, payment_method=self.payment_method)
        if not request.items:
            return TextReply(body="Your cart is empty. Please add items to checkout.")

        try:
            order = self.checkout_service.checkout(request)

        except InsufficientStock as e:
            name = e.product_name or "one of your items"
            if e.available == 0:
                detail = f"Sorry, {name} is sold out."
            else:
                detail = f"Sorry, only {e.available} of {name} left (you asked for {e.requested})."
            return TextReply(body=f"{detail} Type 'cart' to review or clear your cart.")

        except ProductNotFound as e:
            self.carts.remove_item(sender, e.product_id)
            return TextReply(
                body="Sorry, an item in your cart is no longer available and has been removed. "
                     "Type 'cart' to review your cart and check out again."
            )

        except StorageFailure:
            return TextReply(body="Sorry, we couldn't place your order right now. Please try again in a few minutes.")

        # Only after a confirmed commit; the order stands even if the cart survives
        try:
            self.carts.clear(sender)
        except SQLAlchemyError:
            logger.exception(f"Order {order.id} committed but cart {sender} was not cleared")

        return TextReply(
            body=f"Thank you for your order! Your order number is #{order.id}. "
                 f"Your total is {self._money(order.total_price)}. "
                 f"Your order will be delivered with {order.payment_method}."
        )

    # ========================================================================
    # Catalog
    # ========================================================================

    def _on_catalog_item(self, event: CatalogItemSelected):
        product_id = self._resolve_retailer_id(event.retailer_id)
        if product_id is None:
            return TextReply(body="Sorry, that item is no longer available.")

        self.carts.add_item(event.sender, product_id)
        return self._added_to_cart()

    def _on_catalog_order(self, event: CatalogOrder):
        added = 0
        skipped = 0
        for item in event.items:
            product_id = self._resolve_retailer_id(item.retailer_id)
            if product_id is None:
                skipped += 1
                continue
            self.carts.add_item(event.sender, product_id, item.quantity)
            added += 1

        if not added:
            return TextReply(body="Sorry, those items are no longer available.")

        note = " Some items are no longer available and were skipped." if skipped else ""
        return self._added_to_cart(note)

    def _added_to_cart(self, note: str = "") -> ButtonMenuReply:
        return ButtonMenuReply(
            body=f"Item added to your cart.{note} Ready to checkout?",
            buttons=[
                Button(id=CHECKOUT, title="Proceed to Checkout"),
                Button(id=VIEW_CATALOG, title="Keep Shopping"),
            ],
            footer=f"We offer {self.payment_method}.",
        )

    def _resolve_retailer_id(self, retailer_id: str) -> Optional[int]:
        with self.database.session() as session:
            product = ProductRepository(session).find_by_sku(retailer_id)
        return product.id if product else None

    def _money(self, amount: Decimal) -> str:
        return f"{self.currency_symbol}{amount:.2f}"
