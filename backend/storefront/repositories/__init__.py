"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic and always run
on a session handed in by the caller.

Author: TM3
Date: 2025-10-17
"""
from storefront.repositories.product_repository import ProductRepository, DuplicateSkuError
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.cart_repository import CartRepository

__all__ = [
    'ProductRepository',
    'DuplicateSkuError',
    'OrderRepository',
    'CartRepository',
]
