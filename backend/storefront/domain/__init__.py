"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2025-10-17
"""
from storefront.domain.product import Product, ProductCreate, ProductUpdate
from storefront.domain.order import Order, OrderCreate, OrderLine, CheckoutItem, CheckoutRequest
from storefront.domain.cart import CartEntry
from storefront.domain.errors import (
    CheckoutError,
    ProductNotFound,
    InsufficientStock,
    EmptyRequest,
    StorageFailure,
)

__all__ = [
    'Product', 'ProductCreate', 'ProductUpdate',
    'Order', 'OrderCreate', 'OrderLine', 'CheckoutItem', 'CheckoutRequest',
    'CartEntry',
    'CheckoutError', 'ProductNotFound', 'InsufficientStock', 'EmptyRequest', 'StorageFailure',
]
