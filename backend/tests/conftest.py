"""
Pytest fixtures and configuration for Storefront backend tests

Every test gets its own file-backed SQLite database so threads (TestClient,
concurrency tests) can share it.

Author: TM3
Date: 2025-10-17
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from storefront.core.config import Settings
from storefront.core.database import Database
from storefront.connectors.whatsapp_connector import WhatsAppConnector
from storefront.domain.product import ProductCreate
from storefront.main import create_app
from storefront.repositories.product_repository import ProductRepository

APP_SECRET = "test-app-secret"
VERIFY_TOKEN = "test-verify-token"


@pytest.fixture(scope="function")
def database(tmp_path):
    """
    Provides an open database with all tables created

    Scope: function (fresh database file per test)
    """
    db = Database(f"sqlite:///{tmp_path / 'storefront_test.db'}")
    db.open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture
def make_product(database):
    """
    Factory fixture: insert a product and return its domain model
    """
    counter = {"n": 0}

    def _make(name="Masala Dosa", price="10.00", quantity=5, sku=None, category="Food"):
        counter["n"] += 1
        data = ProductCreate(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name,
            price=Decimal(price),
            quantity=quantity,
            category=category,
        )
        with database.transaction() as session:
            return ProductRepository(session).create(data)

    return _make


@pytest.fixture
def stock_of(database):
    """Read a product's current quantity straight from the database"""

    def _stock(product_id):
        with database.session() as session:
            product = ProductRepository(session).find_by_id(product_id, include_inactive=True)
            return product.quantity if product else None

    return _stock


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'storefront_test.db'}",
        VERIFY_TOKEN=VERIFY_TOKEN,
        WHATSAPP_APP_SECRET=APP_SECRET,
        WHATSAPP_ACCESS_TOKEN="test-token",
        WHATSAPP_PHONE_NUMBER_ID="123456",
        WHATSAPP_CATALOG_ID="catalog-1",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def whatsapp():
    """
    Real connector (parsing, signatures, rendering) with sending mocked out
    """
    connector = WhatsAppConnector(
        access_token="test-token",
        phone_number_id="123456",
        app_secret=APP_SECRET,
        catalog_id="catalog-1",
    )
    connector.send_reply = AsyncMock(return_value=True)
    return connector


@pytest.fixture
def client(settings, database, whatsapp):
    """
    Provides a TestClient running the app lifespan against the test database
    """
    app = create_app(settings=settings, database=database, whatsapp=whatsapp)
    with TestClient(app) as test_client:
        yield test_client
