"""
Cart Service
Server-side cart for the WhatsApp channel

No stock validation happens here: stock can change between "add" and
"checkout", so it is only checked by CheckoutService at commit time.

Carts expire lazily: a cart untouched for longer than ttl_hours is
deleted the next time it is read.

Author: TM3
Date: 2025-11-28
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from storefront.core.database import Database
from storefront.domain.cart import CartEntry
from storefront.domain.order import CHANNEL_WHATSAPP, CheckoutItem, CheckoutRequest
from storefront.repositories.cart_repository import CartRepository

logger = logging.getLogger(__name__)


class CartService:
    """Cart aggregate, one cart per channel identity"""

    def __init__(self, database: Database, ttl_hours: int = 24):
        self.database = database
        self.ttl_hours = ttl_hours

    def add_item(self, channel_identity: str, product_id: int, delta: int = 1):
        """Add delta units of a product, incrementing an existing line"""
        if delta < 1:
            raise ValueError("delta must be >= 1")

        with self.database.transaction() as session:
            carts = CartRepository(session)
            self._expire_if_stale(carts, channel_identity)
            carts.add(channel_identity, product_id, delta)

        logger.info(f"Cart {channel_identity}: +{delta} x product {product_id}")

    def get_cart(self, channel_identity: str) -> List[CartEntry]:
        """Current cart lines, empty if the cart expired"""
        with self.database.transaction() as session:
            carts = CartRepository(session)
            if self._expire_if_stale(carts, channel_identity):
                return []
            return carts.get_entries(channel_identity)

    def remove_item(self, channel_identity: str, product_id: int) -> bool:
        with self.database.transaction() as session:
            return CartRepository(session).remove(channel_identity, product_id)

    def clear(self, channel_identity: str) -> int:
        with self.database.transaction() as session:
            removed = CartRepository(session).clear(channel_identity)

        if removed:
            logger.info(f"Cart {channel_identity} cleared ({removed} lines)")
        return removed

    def to_checkout_request(self, channel_identity: str, payment_method: Optional[str] = None) -> CheckoutRequest:
        """Canonical checkout request for everything currently in the cart"""
        entries = self.get_cart(channel_identity)
        return CheckoutRequest(
            items=[CheckoutItem(product_id=e.product_id, quantity=e.quantity) for e in entries],
            customer_ref=channel_identity,
            payment_method=payment_method,
            channel=CHANNEL_WHATSAPP,
        )

    def _expire_if_stale(self, carts: CartRepository, channel_identity: str) -> bool:
        if not self.ttl_hours:
            return False

        last_activity = carts.last_activity(channel_identity)
        if last_activity is None:
            return False

        # SQLite hands back naive datetimes
        if last_activity.tzinfo is None:
            last_activity = last_activity.replace(tzinfo=timezone.utc)

        if datetime.now(timezone.utc) - last_activity <= timedelta(hours=self.ttl_hours):
            return False

        removed = carts.clear(channel_identity)
        logger.info(f"Cart {channel_identity} expired ({removed} lines)")
        return True
