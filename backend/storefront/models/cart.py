"""
Carrito del canal WhatsApp (una fila por identidad + producto)
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from storefront.core.database import Base
from storefront.models.product import utcnow


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    channel_identity = Column(String(100), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("channel_identity", "product_id", name="uq_cart_items_identity_product"),
    )
