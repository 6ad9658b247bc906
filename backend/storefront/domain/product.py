"""
Product Domain Model

Represents a product entity in the store catalog.
This is the single source of truth for product data structure.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal

# Largest value an INTEGER column holds (PostgreSQL int4)
MAX_DB_INT = 2**31 - 1


class Product(BaseModel):
    """
    Product domain model - represents a product in our catalog

    Fields:
        id: Internal product ID (primary key)
        sku: Stock Keeping Unit (unique, also the WhatsApp product_retailer_id)
        name: Product name
        description: Product description (optional)
        category: Product category (optional)
        image_url: Image shown in the POS grid (optional)
        price: Selling price
        quantity: Units in stock
        is_active: False once the product was archived
        created_at: When product was created
        updated_at: When product was last updated
    """

    id: int = Field(..., description="Internal product ID")
    sku: str = Field(..., description="Stock Keeping Unit")
    name: str = Field(..., description="Product name")

    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, description="Product category")
    image_url: Optional[str] = Field(None, description="Product image URL")

    price: Decimal = Field(..., description="Sale price", ge=0)
    quantity: int = Field(0, description="Units in stock", ge=0)

    is_active: bool = Field(True, description="Whether product is active")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    # Pydantic v2 configuration
    model_config = ConfigDict(from_attributes=True)

    @property
    def is_out_of_stock(self) -> bool:
        """Check if product is out of stock"""
        return self.quantity <= 0

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Returns dict with all fields plus computed properties
        """
        data = self.model_dump()
        data['is_out_of_stock'] = self.is_out_of_stock

        # Convert Decimal to float for JSON compatibility
        data['price'] = float(data['price'])

        if data.get('created_at'):
            data['created_at'] = data['created_at'].isoformat()
        if data.get('updated_at'):
            data['updated_at'] = data['updated_at'].isoformat()

        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    quantity: int = Field(0, ge=0, le=MAX_DB_INT)


class ProductUpdate(BaseModel):
    """Schema for updating an existing product"""
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0, le=MAX_DB_INT)
