"""
Tests de la conexión a la base de datos (Database handle)

Author: TM3
Date: 2025-12-02
"""
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from storefront.core.config import Settings
from storefront.core.database import Database
from storefront.models.product import Product as ProductRow
from storefront.repositories.product_repository import ProductRepository


class TestDatabaseLifecycle:
    """Test open/close and units of work"""

    def test_engine_requires_open(self):
        database = Database("sqlite://")

        with pytest.raises(RuntimeError):
            database.engine

    def test_in_memory_database(self):
        database = Database("sqlite:///:memory:").open()
        database.create_all()
        try:
            with database.transaction() as session:
                session.add(ProductRow(sku="A-1", name="A", price=1, quantity=1))
            with database.session() as session:
                assert session.execute(select(ProductRow.sku)).scalar_one() == "A-1"
        finally:
            database.close()

    def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(ValueError):
            with database.transaction() as session:
                session.add(ProductRow(sku="A-1", name="A", price=1, quantity=1))
                session.flush()
                raise ValueError("boom")

        with database.session() as session:
            assert session.execute(select(ProductRow)).first() is None

    def test_open_twice_keeps_engine(self, database):
        engine = database.engine

        assert database.open().engine is engine

    def test_reads_do_not_wait_for_open_writer(self, database, make_product):
        """Read-only sessions use a deferred BEGIN and see the last committed state"""
        product = make_product(quantity=5)

        with database.transaction() as session:
            ProductRepository(session).reserve_stock(product.id, 1)
            with database.session() as reader:
                assert ProductRepository(reader).find_by_id(product.id).quantity == 5

        with database.session() as reader:
            assert ProductRepository(reader).find_by_id(product.id).quantity == 4


class TestDatabasePing:
    """Test SELECT 1 with retry"""

    def test_ping_returns_latency(self, database):
        latency = database.ping()

        assert isinstance(latency, float)
        assert latency >= 0

    @patch("storefront.core.database.time.sleep")
    def test_ping_retries_then_raises(self, mock_sleep):
        # Arrange: every connection attempt fails
        database = Database("sqlite://")
        database._engine = MagicMock()
        database._engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        # Act & Assert
        with pytest.raises(OperationalError):
            database.ping(max_retries=3, retry_delay=0.5)

        assert database._engine.connect.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]


class TestSettings:
    """Test configuration parsing"""

    def test_allowed_origins_comma_list(self):
        settings = Settings(_env_file=None, ALLOWED_ORIGINS="http://a.test, http://b.test")

        assert settings.get_allowed_origins() == ["http://a.test", "http://b.test"]

    def test_allowed_origins_json_array(self):
        settings = Settings(_env_file=None, ALLOWED_ORIGINS='["http://a.test"]')

        assert settings.get_allowed_origins() == ["http://a.test"]

    def test_whatsapp_configured(self):
        assert Settings(_env_file=None).whatsapp_configured is False
        assert Settings(
            _env_file=None, WHATSAPP_ACCESS_TOKEN="t", WHATSAPP_PHONE_NUMBER_ID="1"
        ).whatsapp_configured is True
