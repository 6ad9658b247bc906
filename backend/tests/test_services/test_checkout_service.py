"""
Tests for CheckoutService

Runs against a real SQLite database: the point of these tests is that a
rejected checkout leaves stock and the order ledger untouched.

Author: TM3
Date: 2025-12-02
"""
import threading
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import EmptyRequest, InsufficientStock, ProductNotFound, StorageFailure
from storefront.domain.order import CHANNEL_WHATSAPP, CheckoutItem, CheckoutRequest
from storefront.domain.product import ProductUpdate
from storefront.models.product import Product as ProductRow
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.services.checkout_service import CheckoutService


def _request(*items, **kwargs):
    return CheckoutRequest(
        items=[CheckoutItem(product_id=pid, quantity=qty) for pid, qty in items],
        **kwargs
    )


def _order_count(database):
    with database.session() as session:
        return OrderRepository(session).find_all()[1]


@pytest.fixture
def service(database):
    return CheckoutService(database)


class TestCheckoutSuccess:
    """Test committed checkouts"""

    def test_checkout_decrements_stock_and_computes_total(self, service, make_product, stock_of):
        """Buying 3 of 5 at 10.00 leaves 2 and totals 30.00"""
        # Arrange
        product = make_product(price="10.00", quantity=5)

        # Act
        order = service.checkout(_request((product.id, 3)))

        # Assert
        assert order.id is not None
        assert order.total_price == Decimal("30.00")
        assert order.status == "Pending"
        assert order.channel == "pos"
        assert len(order.lines) == 1
        assert order.lines[0].quantity == 3
        assert order.lines[0].unit_price == Decimal("10.00")
        assert order.lines[0].line_total == Decimal("30.00")
        assert stock_of(product.id) == 2

    def test_order_is_persisted_with_lines(self, service, database, make_product):
        first = make_product(name="Idli", price="4.50", quantity=10)
        second = make_product(name="Vada", price="3.25", quantity=10)

        order = service.checkout(_request((first.id, 2), (second.id, 3), customer_ref="Asha"))

        with database.session() as session:
            stored = OrderRepository(session).find_by_id(order.id)

        assert stored is not None
        assert stored.customer_ref == "Asha"
        assert [line.name for line in stored.lines] == ["Idli", "Vada"]
        assert stored.total_price == Decimal("19.75")

    def test_duplicate_product_ids_are_merged(self, service, make_product, stock_of):
        product = make_product(quantity=10)

        order = service.checkout(_request((product.id, 2), (product.id, 3)))

        assert len(order.lines) == 1
        assert order.lines[0].quantity == 5
        assert stock_of(product.id) == 5

    def test_merged_quantity_is_checked_against_stock(self, service, make_product, stock_of):
        """Two lines of 3 each against 5 in stock is a request for 6"""
        product = make_product(quantity=5)

        with pytest.raises(InsufficientStock) as exc_info:
            service.checkout(_request((product.id, 3), (product.id, 3)))

        assert exc_info.value.requested == 6
        assert exc_info.value.available == 5
        assert stock_of(product.id) == 5

    def test_merged_quantity_beyond_integer_range(self, service, make_product, stock_of):
        """Two in-range lines can add up to more than any stock column holds"""
        product = make_product(quantity=5)
        biggest = 2**31 - 1

        with pytest.raises(InsufficientStock) as exc_info:
            service.checkout(_request((product.id, biggest), (product.id, biggest)))

        assert exc_info.value.requested == 2 * biggest
        assert exc_info.value.available == 5
        assert stock_of(product.id) == 5

    def test_default_payment_method_applied(self, service, make_product):
        product = make_product()

        order = service.checkout(_request((product.id, 1)))

        assert order.payment_method == "Cash on Delivery"

    def test_explicit_payment_method_and_channel_kept(self, service, make_product):
        product = make_product()

        order = service.checkout(
            _request((product.id, 1), payment_method="Cash", channel=CHANNEL_WHATSAPP, customer_ref="919999999999")
        )

        assert order.payment_method == "Cash"
        assert order.channel == "whatsapp"
        assert order.customer_ref == "919999999999"

    def test_buying_entire_stock_leaves_zero(self, service, make_product, stock_of):
        product = make_product(quantity=4)

        service.checkout(_request((product.id, 4)))

        assert stock_of(product.id) == 0


class TestCheckoutRejections:
    """Test that rejected checkouts change nothing"""

    def test_insufficient_stock_leaves_stock_unchanged(self, service, database, make_product, stock_of):
        # Arrange
        product = make_product(name="Masala Dosa", price="10.00", quantity=5)
        service.checkout(_request((product.id, 3)))

        # Act
        with pytest.raises(InsufficientStock) as exc_info:
            service.checkout(_request((product.id, 3)))

        # Assert
        error = exc_info.value
        assert error.product_id == product.id
        assert error.requested == 3
        assert error.available == 2
        assert error.product_name == "Masala Dosa"
        assert stock_of(product.id) == 2
        assert _order_count(database) == 1

    def test_multi_item_failure_rolls_back_earlier_lines(self, service, database, make_product, stock_of):
        """All or nothing: the first product is not decremented when the second fails"""
        plenty = make_product(quantity=10)
        scarce = make_product(quantity=1)

        with pytest.raises(InsufficientStock):
            service.checkout(_request((plenty.id, 4), (scarce.id, 2)))

        assert stock_of(plenty.id) == 10
        assert stock_of(scarce.id) == 1
        assert _order_count(database) == 0

    def test_unknown_product_rejected(self, service, database, make_product, stock_of):
        product = make_product(quantity=5)

        with pytest.raises(ProductNotFound) as exc_info:
            service.checkout(_request((product.id, 1), (999, 1)))

        assert exc_info.value.product_id == 999
        assert stock_of(product.id) == 5
        assert _order_count(database) == 0

    def test_archived_product_rejected(self, service, database, make_product, stock_of):
        product = make_product(quantity=5)
        with database.transaction() as session:
            session.execute(update(ProductRow).where(ProductRow.id == product.id).values(is_active=False))

        with pytest.raises(ProductNotFound):
            service.checkout(_request((product.id, 1)))

        assert stock_of(product.id) == 5

    def test_empty_request_rejected(self, service, database):
        with pytest.raises(EmptyRequest):
            service.checkout(CheckoutRequest(items=[]))

        assert _order_count(database) == 0

    def test_error_payload(self, service, make_product):
        product = make_product(quantity=1)

        with pytest.raises(InsufficientStock) as exc_info:
            service.checkout(_request((product.id, 2)))

        payload = exc_info.value.to_dict()
        assert payload["code"] == "insufficient_stock"
        assert payload["requested"] == 2
        assert payload["available"] == 1
        assert "error" in payload

    def test_storage_failure_rolls_back(self, service, database, make_product, stock_of):
        """A failing order insert surfaces as StorageFailure with stock restored"""
        product = make_product(quantity=5)
        failure = OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))

        with patch.object(OrderRepository, "insert", side_effect=failure):
            with pytest.raises(StorageFailure):
                service.checkout(_request((product.id, 2)))

        assert stock_of(product.id) == 5
        assert _order_count(database) == 0


class TestOrderImmutability:
    """Test that committed orders keep their snapshots"""

    def test_price_change_does_not_alter_committed_order(self, service, database, make_product):
        # Arrange
        product = make_product(name="Masala Dosa", price="10.00", quantity=5)
        order = service.checkout(_request((product.id, 2)))

        # Act
        with database.transaction() as session:
            ProductRepository(session).update(product.id, ProductUpdate(price=Decimal("99.00"), name="Paper Dosa"))

        # Assert
        with database.session() as session:
            stored = OrderRepository(session).find_by_id(order.id)
        assert stored.total_price == Decimal("20.00")
        assert stored.lines[0].unit_price == Decimal("10.00")
        assert stored.lines[0].name == "Masala Dosa"

    def test_deleting_sold_product_keeps_order_lines(self, service, database, make_product):
        product = make_product(name="Vada", quantity=5)
        order = service.checkout(_request((product.id, 1)))

        with database.transaction() as session:
            result = ProductRepository(session).delete(product.id)

        with database.session() as session:
            stored = OrderRepository(session).find_by_id(order.id)
        assert result == "archived"
        assert stored.lines[0].name == "Vada"
        assert stored.lines[0].product_id == product.id


class TestConcurrentCheckouts:
    """Test that concurrent checkouts never oversell"""

    def _run_concurrently(self, service, requests):
        barrier = threading.Barrier(len(requests))
        results = []
        lock = threading.Lock()

        def worker(request):
            barrier.wait()
            try:
                outcome = service.checkout(request)
            except Exception as e:  # collected and asserted on below
                outcome = e
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker, args=(r,)) for r in requests]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return results

    def test_two_checkouts_for_full_stock_one_wins(self, service, database, make_product, stock_of):
        product = make_product(quantity=5)

        results = self._run_concurrently(service, [_request((product.id, 5)), _request((product.id, 5))])

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStock)
        assert failures[0].available == 0
        assert stock_of(product.id) == 0
        assert _order_count(database) == 1

    def test_many_single_unit_checkouts_sell_exactly_stock(self, service, database, make_product, stock_of):
        product = make_product(quantity=5)

        results = self._run_concurrently(service, [_request((product.id, 1)) for _ in range(8)])

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 5
        assert len(failures) == 3
        assert all(isinstance(f, InsufficientStock) for f in failures)
        assert stock_of(product.id) == 0
        assert _order_count(database) == 5
