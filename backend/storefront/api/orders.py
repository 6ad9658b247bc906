"""
Orders API Endpoints
Handles POS checkout, order history and invoice lookups

Author: TM3
Date: 2025-10-03
Updated: 2025-10-17 (refactor: use OrderRepository for data access)
Updated: 2025-12-02 (POS checkout through CheckoutService)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from storefront.api.dependencies import get_checkout_service
from storefront.core.database import Database, get_database
from storefront.domain.errors import CheckoutError, StorageFailure
from storefront.domain.order import CHANNEL_POS, CheckoutItem, CheckoutRequest, OrderStatusUpdate
from storefront.domain.product import MAX_DB_INT
from storefront.repositories.order_repository import OrderRepository
from storefront.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter()

WALK_IN_CUSTOMER = "Walk-in Customer"


# Request models
class PosCheckout(BaseModel):
    """Body sent by the web POS; the cart lives in the browser"""
    customer_name: Optional[str] = Field(None, max_length=255)
    items: List[CheckoutItem] = Field(default_factory=list)
    payment_method: Optional[str] = Field(None, max_length=100)


@router.get("/")
def get_orders(
    channel: Optional[str] = Query(None, description="Filter by channel (pos, whatsapp)"),
    status: Optional[str] = Query(None, description="Filter by order status"),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    database: Database = Depends(get_database),
):
    """
    Get orders, newest first, with their lines
    """
    with database.session() as session:
        orders, total = OrderRepository(session).find_all(
            channel=channel,
            status=status,
            limit=limit,
            offset=offset
        )

    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(orders),
        "data": [order.to_dict() for order in orders]
    }


@router.post("/", status_code=201)
@router.post("/checkout", status_code=201)
def checkout(payload: PosCheckout, checkout_service: CheckoutService = Depends(get_checkout_service)):
    """
    Place an order from the web POS

    Stock is validated and decremented atomically with the order insert.

    Returns:
        201 with the created order, 400 {error} when the order cannot be
        fulfilled, 500 {error} on a storage failure
    """
    request = CheckoutRequest(
        items=payload.items,
        customer_ref=(payload.customer_name or "").strip() or WALK_IN_CUSTOMER,
        payment_method=payload.payment_method,
        channel=CHANNEL_POS,
    )

    try:
        order = checkout_service.checkout(request)
    except StorageFailure as e:
        return JSONResponse(status_code=500, content=e.to_dict())
    except CheckoutError as e:
        return JSONResponse(status_code=400, content=e.to_dict())

    return order.to_dict()


@router.get("/{order_id}")
def get_order(order_id: int = Path(..., le=MAX_DB_INT), database: Database = Depends(get_database)):
    """
    Get a single order (invoice view)
    """
    with database.session() as session:
        order = OrderRepository(session).find_by_id(order_id)

    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

    return {
        "status": "success",
        "data": order.to_dict()
    }


@router.patch("/{order_id}/status")
def update_order_status(
    payload: OrderStatusUpdate,
    order_id: int = Path(..., le=MAX_DB_INT),
    database: Database = Depends(get_database),
):
    """
    Move an order between Pending and Completed

    Lines and totals are immutable; status is the only field that changes.
    """
    with database.transaction() as session:
        order = OrderRepository(session).update_status(order_id, payload.status)

    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

    logger.info(f"Order {order_id} status -> {payload.status}")
    return {
        "status": "success",
        "data": order.to_dict()
    }
