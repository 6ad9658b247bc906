"""
Cart Repository - Data Access Layer for WhatsApp carts

Author: TM3
Date: 2025-11-28
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from storefront.domain.cart import CartEntry
from storefront.models.cart import CartItem
from storefront.models.product import Product as ProductRow


class CartRepository:
    """
    Repository for cart lines

    One row per (channel_identity, product_id). Lines are returned in the
    order they were first added.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_entries(self, channel_identity: str) -> List[CartEntry]:
        """Cart lines with the product's current name and price"""
        rows = self.session.execute(
            select(
                CartItem.channel_identity,
                CartItem.product_id,
                CartItem.quantity,
                CartItem.updated_at,
                ProductRow.name,
                ProductRow.price,
            )
            .outerjoin(ProductRow, ProductRow.id == CartItem.product_id)
            .where(CartItem.channel_identity == channel_identity)
            .order_by(CartItem.id)
        ).all()

        return [CartEntry.model_validate(row._mapping) for row in rows]

    def last_activity(self, channel_identity: str) -> Optional[datetime]:
        return self.session.execute(
            select(func.max(CartItem.updated_at)).where(CartItem.channel_identity == channel_identity)
        ).scalar_one_or_none()

    def add(self, channel_identity: str, product_id: int, delta: int = 1):
        """Insert the line or increment its quantity"""
        now = datetime.now(timezone.utc)
        result = self.session.execute(
            update(CartItem)
            .where(CartItem.channel_identity == channel_identity, CartItem.product_id == product_id)
            .values(quantity=CartItem.quantity + delta, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.session.add(CartItem(
                channel_identity=channel_identity,
                product_id=product_id,
                quantity=delta,
                created_at=now,
                updated_at=now,
            ))
            self.session.flush()

        # Every line carries the cart's last-activity time
        self.touch(channel_identity, now)

    def touch(self, channel_identity: str, when: datetime):
        self.session.execute(
            update(CartItem)
            .where(CartItem.channel_identity == channel_identity)
            .values(updated_at=when)
            .execution_options(synchronize_session=False)
        )

    def remove(self, channel_identity: str, product_id: int) -> bool:
        result = self.session.execute(
            delete(CartItem).where(
                CartItem.channel_identity == channel_identity,
                CartItem.product_id == product_id,
            )
        )
        return result.rowcount > 0

    def clear(self, channel_identity: str) -> int:
        """Delete every line for this identity, returns how many were removed"""
        result = self.session.execute(
            delete(CartItem).where(CartItem.channel_identity == channel_identity)
        )
        return result.rowcount
