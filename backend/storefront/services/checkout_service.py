"""
Checkout Service
Turns a canonical CheckoutRequest into a committed order

The whole checkout runs inside one database transaction:
1. Merge duplicate product ids (first-reference order kept)
2. For each product, atomic check-and-decrement of stock
3. Snapshot name/sku/price into order lines
4. Compute the total server-side
5. Insert the order
6. Commit

Any failure rolls the transaction back, so a rejected checkout leaves
stock and the ledger exactly as they were.

Author: TM3
Date: 2025-12-02
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.database import Database
from storefront.domain.errors import CheckoutError, EmptyRequest, StorageFailure
from storefront.domain.order import (
    ORDER_STATUS_PENDING,
    CheckoutRequest,
    Order,
    OrderCreate,
    OrderLine,
)
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class CheckoutService:
    """
    Checkout transaction engine

    Shared by every channel adapter. Holds no state besides the injected
    database handle.
    """

    def __init__(self, database: Database, default_payment_method: str = "Cash on Delivery"):
        self.database = database
        self.default_payment_method = default_payment_method

    def checkout(self, request: CheckoutRequest) -> Order:
        """
        Validate stock, decrement it and write the order, all or nothing

        Args:
            request: Canonical checkout request from a channel adapter

        Returns:
            The committed Order

        Raises:
            EmptyRequest: no items
            ProductNotFound: an item references a missing/archived product
            InsufficientStock: an item asks for more than is available
            StorageFailure: the transaction could not be completed
        """
        if not request.items:
            raise EmptyRequest()

        requested = request.merged_items()

        try:
            with self.database.transaction() as session:
                products = ProductRepository(session)
                lines: List[OrderLine] = []

                for product_id, quantity in requested.items():
                    product = products.reserve_stock(product_id, quantity)
                    unit_price = product.price.quantize(CENTS)
                    lines.append(OrderLine(
                        product_id=product.id,
                        sku=product.sku,
                        name=product.name,
                        quantity=quantity,
                        unit_price=unit_price,
                        line_total=(unit_price * quantity).quantize(CENTS),
                    ))

                total_price = sum((line.line_total for line in lines), Decimal("0.00"))

                order = OrderRepository(session).insert(OrderCreate(
                    customer_ref=request.customer_ref,
                    channel=request.channel,
                    lines=lines,
                    total_price=total_price,
                    payment_method=request.payment_method or self.default_payment_method,
                    status=ORDER_STATUS_PENDING,
                    created_at=datetime.now(timezone.utc),
                ))

        except CheckoutError as e:
            logger.warning(f"Checkout rejected for {request.customer_ref} ({request.channel}): {e.message}")
            raise

        except SQLAlchemyError as e:
            logger.exception(f"Checkout storage failure for {request.customer_ref} ({request.channel})")
            raise StorageFailure() from e

        logger.info(
            f"Order {order.id} committed: {order.total_quantity} units, "
            f"total {order.total_price} ({order.channel})"
        )
        return order
