"""
Service Layer - Business logic on top of the repositories

Author: TM3
Date: 2025-11-28
"""
from storefront.services.checkout_service import CheckoutService
from storefront.services.cart_service import CartService
from storefront.services.analytics_service import AnalyticsService
from storefront.services.chat_bot_service import ChatBotService

__all__ = [
    'CheckoutService',
    'CartService',
    'AnalyticsService',
    'ChatBotService',
]
