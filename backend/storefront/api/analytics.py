"""
Analytics API Endpoints
Dashboard KPIs for the POS back office

Author: TM3
Date: 2025-11-14
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.dependencies import get_analytics_service
from storefront.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/")
def get_analytics(
    days: Optional[int] = Query(30, ge=1, le=366, description="Days included in the sales trend"),
    top: int = Query(5, ge=1, le=50, description="Number of best sellers"),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """
    Get analytics data for charts

    Returns:
    - Total revenue, order count, average order value
    - Active product count
    - Daily revenue trend
    - Best sellers by units
    """
    return {
        "status": "success",
        "data": analytics.get_summary(days=days, top=top)
    }
