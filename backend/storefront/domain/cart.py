"""
Cart Domain Model

Server-side cart line for the WhatsApp channel.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CartEntry(BaseModel):
    """
    One (channel identity, product) line in a cart

    name and price are read from the live catalog when the cart is loaded;
    the cart itself stores only the product id and quantity.
    """

    channel_identity: str = Field(..., description="Phone number or session id")
    product_id: int = Field(..., description="Product catalog ID")
    quantity: int = Field(..., description="Units in cart", ge=1)
    name: Optional[str] = Field(None, description="Current product name")
    price: Optional[Decimal] = Field(None, description="Current product price")
    updated_at: Optional[datetime] = Field(None, description="Last time the line changed")

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        if self.price is None:
            return Decimal("0")
        return self.price * self.quantity
