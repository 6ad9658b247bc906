"""
FastAPI dependencies that build services around the lifespan-owned Database
"""
from fastapi import Depends, Request

from storefront.core.config import Settings
from storefront.core.database import Database, get_database
from storefront.connectors.whatsapp_connector import WhatsAppConnector
from storefront.services.analytics_service import AnalyticsService
from storefront.services.cart_service import CartService
from storefront.services.chat_bot_service import ChatBotService
from storefront.services.checkout_service import CheckoutService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_checkout_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> CheckoutService:
    return CheckoutService(database, default_payment_method=settings.DEFAULT_PAYMENT_METHOD)


def get_cart_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> CartService:
    return CartService(database, ttl_hours=settings.CART_TTL_HOURS)


def get_analytics_service(database: Database = Depends(get_database)) -> AnalyticsService:
    return AnalyticsService(database)


def get_chat_bot_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
    cart_service: CartService = Depends(get_cart_service),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> ChatBotService:
    return ChatBotService(
        database,
        cart_service,
        checkout_service,
        currency_symbol=settings.CURRENCY_SYMBOL,
        payment_method=settings.DEFAULT_PAYMENT_METHOD,
    )


def get_whatsapp_connector(request: Request) -> WhatsAppConnector:
    return request.app.state.whatsapp
