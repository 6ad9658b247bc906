"""
Order Repository - Data Access Layer for Orders

Handles all database queries for the order ledger and returns Order
domain models. Orders are append-only: besides insert, the only write is
the status transition.

Author: TM3
Date: 2025-10-17
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.domain.order import Order, OrderCreate
from storefront.models.order import Order as OrderRow, OrderLine as OrderLineRow


class OrderRepository:
    """
    Repository for Order data access

    All queries for orders are centralized here.
    Returns Order domain models with their lines.
    """

    def __init__(self, session: Session):
        self.session = session

    def insert(self, data: OrderCreate) -> Order:
        """
        Append an order and its lines

        Returns:
            The order with its assigned id
        """
        row = OrderRow(
            customer_ref=data.customer_ref,
            channel=data.channel,
            total_price=data.total_price,
            payment_method=data.payment_method,
            status=data.status,
            created_at=data.created_at,
        )
        for position, line in enumerate(data.lines):
            row.lines.append(OrderLineRow(position=position, **line.model_dump()))

        self.session.add(row)
        self.session.flush()
        return Order.model_validate(row)

    def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Find order by ID with its lines

        Returns:
            Order or None if not found
        """
        row = self.session.execute(
            select(OrderRow)
            .options(selectinload(OrderRow.lines))
            .where(OrderRow.id == order_id)
        ).scalar_one_or_none()

        if row is None:
            return None
        return Order.model_validate(row)

    def find_all(
        self,
        channel: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders, newest first

        Args:
            channel: Filter by channel (pos, whatsapp)
            status: Filter by order status
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of orders, total count)
        """
        conditions = []

        if channel:
            conditions.append(OrderRow.channel == channel)

        if status:
            conditions.append(OrderRow.status == status)

        total = self.session.execute(
            select(func.count()).select_from(OrderRow).where(*conditions)
        ).scalar_one()

        # Lines for the whole page in one extra query
        rows = self.session.execute(
            select(OrderRow)
            .options(selectinload(OrderRow.lines))
            .where(*conditions)
            .order_by(OrderRow.created_at.desc(), OrderRow.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return [Order.model_validate(row) for row in rows], total

    def update_status(self, order_id: int, status: str) -> Optional[Order]:
        row = self.session.get(OrderRow, order_id)
        if row is None:
            return None

        row.status = status
        self.session.flush()
        return Order.model_validate(row)

    def references_product(self, product_id: int) -> bool:
        """Check whether any order line was sold from this product"""
        return self.session.execute(
            select(OrderLineRow.id).where(OrderLineRow.product_id == product_id).limit(1)
        ).first() is not None

    # ========================================================================
    # Aggregates (analytics)
    # ========================================================================

    def get_totals(self) -> Dict[str, Any]:
        """
        Returns:
            Dict with total_orders, total_revenue and average_order_value
        """
        row = self.session.execute(
            select(
                func.count(OrderRow.id).label('total_orders'),
                func.coalesce(func.sum(OrderRow.total_price), 0).label('total_revenue'),
                func.coalesce(func.avg(OrderRow.total_price), 0).label('average_order_value'),
            )
        ).one()

        return {
            'total_orders': row.total_orders,
            'total_revenue': Decimal(str(row.total_revenue)),
            'average_order_value': Decimal(str(row.average_order_value)).quantize(Decimal('0.01')),
        }

    def revenue_by_day(self, since=None) -> List[Dict[str, Any]]:
        """
        Revenue and order count grouped by calendar day, oldest first

        Args:
            since: Only include orders created at or after this datetime
        """
        day = func.date(OrderRow.created_at).label('day')
        stmt = select(
            day,
            func.sum(OrderRow.total_price).label('revenue'),
            func.count(OrderRow.id).label('orders'),
        )
        if since is not None:
            stmt = stmt.where(OrderRow.created_at >= since)

        rows = self.session.execute(stmt.group_by(day).order_by(day)).all()

        return [
            {
                'date': str(row.day),
                'revenue': Decimal(str(row.revenue)),
                'orders': row.orders,
            }
            for row in rows
        ]

    def units_by_product(self, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Best sellers by units, grouped on the snapshotted line name
        """
        units = func.sum(OrderLineRow.quantity).label('units_sold')
        rows = self.session.execute(
            select(
                OrderLineRow.name,
                units,
                func.sum(OrderLineRow.line_total).label('revenue'),
            )
            .group_by(OrderLineRow.name)
            .order_by(units.desc(), OrderLineRow.name)
            .limit(limit)
        ).all()

        return [
            {
                'name': row.name,
                'units_sold': int(row.units_sold),
                'revenue': Decimal(str(row.revenue)),
            }
            for row in rows
        ]
