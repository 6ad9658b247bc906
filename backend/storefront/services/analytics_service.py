"""
Analytics Service
Read-only rollups over the order ledger for the POS dashboard

Author: TM3
Date: 2025-11-14
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from storefront.core.database import Database
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository


class AnalyticsService:
    """Dashboard KPIs, daily revenue trend and best sellers"""

    def __init__(self, database: Database):
        self.database = database

    def get_summary(self, days: Optional[int] = 30, top: int = 5) -> Dict[str, Any]:
        """
        Args:
            days: Window for the daily trend (None for all time)
            top: Number of best sellers to return

        Returns:
            Dict with revenue, orders, average_order_value, products,
            sales_trend and top_products
        """
        since = None
        if days:
            since = datetime.now(timezone.utc) - timedelta(days=days)

        with self.database.session() as session:
            orders = OrderRepository(session)
            totals = orders.get_totals()
            trend = orders.revenue_by_day(since=since)
            best_sellers = orders.units_by_product(limit=top)
            product_count = ProductRepository(session).count_active()

        return {
            'revenue': float(totals['total_revenue']),
            'orders': totals['total_orders'],
            'average_order_value': float(totals['average_order_value']),
            'products': product_count,
            'sales_trend': [
                {'date': d['date'], 'revenue': float(d['revenue']), 'orders': d['orders']}
                for d in trend
            ],
            'top_products': [
                {'name': p['name'], 'units_sold': p['units_sold'], 'revenue': float(p['revenue'])}
                for p in best_sellers
            ],
        }
