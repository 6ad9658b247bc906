"""
Modelos de base de datos
"""
from .product import Product
from .order import Order, OrderLine
from .cart import CartItem

__all__ = [
    "Product",
    "Order",
    "OrderLine",
    "CartItem",
]
