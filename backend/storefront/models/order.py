"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.product import utcnow


class Order(Base):
    """
    Tabla principal de órdenes - append only
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    # Cliente y canal
    customer_ref = Column(String(255), nullable=False, index=True)
    channel = Column(String(50), nullable=False, default="pos", index=True)

    # Montos
    total_price = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(100), nullable=False)

    # Estado
    status = Column(String(50), nullable=False, default="Pending", index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )


class OrderLine(Base):
    """
    Línea de la orden: snapshot del producto al momento de venta
    """
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False)

    # No FK to products: the line must outlive product edits and deletions
    product_id = Column(Integer, index=True, nullable=False)
    sku = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="lines")
