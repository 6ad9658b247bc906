"""
Catálogo de productos / inventario
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text

from storefront.core.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Product(Base):
    """
    Producto del catálogo con stock mutable
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    # Identificación (sku doubles as the WhatsApp product_retailer_id)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), index=True)
    image_url = Column(String(500))

    # Precio y stock
    price = Column(Numeric(12, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
