"""
Order Domain Models

Represents order-related entities and the canonical checkout request
that every sales channel produces.

Author: TM3
Date: 2025-10-17
"""
from collections import OrderedDict
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, Literal, Optional, List
from datetime import datetime
from decimal import Decimal

from storefront.domain.product import MAX_DB_INT

ORDER_STATUS_PENDING = "Pending"
ORDER_STATUS_COMPLETED = "Completed"

CHANNEL_POS = "pos"
CHANNEL_WHATSAPP = "whatsapp"


class OrderLine(BaseModel):
    """
    Order line - snapshot of the product at commit time

    Fields:
        product_id: Catalog ID the line was sold from (may no longer exist)
        sku: Product SKU at time of order
        name: Product name at time of order
        quantity: Number of units ordered
        unit_price: Price per unit at time of order
        line_total: quantity * unit_price
    """

    product_id: int = Field(..., description="Product catalog ID")
    sku: str = Field(..., description="Product SKU at order time")
    name: str = Field(..., description="Product name at order time")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: Decimal = Field(..., description="Price per unit", ge=0)
    line_total: Decimal = Field(..., description="Total for line item", ge=0)

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        for field in ['unit_price', 'line_total']:
            data[field] = float(data[field])
        return data


class Order(BaseModel):
    """
    Order domain model - an immutable, committed order

    Fields:
        id: Internal order ID
        customer_ref: Customer name (POS) or phone number (WhatsApp)
        channel: Channel the order came from (pos, whatsapp)
        lines: Ordered list of line snapshots
        total_price: Sum of line totals, computed server-side
        payment_method: Payment method chosen at checkout
        status: Order status (Pending, Completed)
        created_at: Commit timestamp
    """

    id: int = Field(..., description="Internal order ID")
    customer_ref: str = Field(..., description="Customer name or channel identity")
    channel: str = Field(CHANNEL_POS, description="Sales channel")
    lines: List[OrderLine] = Field(default_factory=list, description="Order lines")
    total_price: Decimal = Field(..., description="Total order amount", ge=0)
    payment_method: str = Field(..., description="Payment method")
    status: str = Field(ORDER_STATUS_PENDING, description="Order status")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        """Number of lines in the order"""
        return len(self.lines)

    @property
    def total_quantity(self) -> int:
        """Total quantity of all items"""
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Returns dict with all fields plus computed properties
        """
        data = self.model_dump()

        data['item_count'] = self.item_count
        data['total_quantity'] = self.total_quantity
        data['total_price'] = float(data['total_price'])
        data['created_at'] = self.created_at.isoformat()
        data['lines'] = [line.to_dict() for line in self.lines]

        return data


class CheckoutItem(BaseModel):
    """A requested (product, quantity) pair"""
    product_id: int = Field(..., le=MAX_DB_INT)
    quantity: int = Field(..., ge=1, le=MAX_DB_INT)


class CheckoutRequest(BaseModel):
    """
    Canonical checkout request

    Built by a channel adapter (web POS body or WhatsApp cart) and handed
    to CheckoutService.checkout.
    """
    items: List[CheckoutItem] = Field(default_factory=list)
    customer_ref: str = "Walk-in Customer"
    payment_method: Optional[str] = None
    channel: str = CHANNEL_POS

    def merged_items(self) -> Dict[int, int]:
        """
        Quantities per product id, duplicates summed

        Keys keep the order in which each product was first referenced.
        """
        merged: Dict[int, int] = OrderedDict()
        for item in self.items:
            merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
        return merged


class OrderCreate(BaseModel):
    """Schema for inserting a new order into the ledger"""
    customer_ref: str
    channel: str = CHANNEL_POS
    lines: List[OrderLine] = Field(..., min_length=1)
    total_price: Decimal = Field(..., ge=0)
    payment_method: str
    status: str = ORDER_STATUS_PENDING
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    """Schema for the only mutation an order allows"""
    status: Literal["Pending", "Completed"]
