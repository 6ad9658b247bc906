"""
Products API Endpoints
Handles product catalog (inventory) management and queries

Author: TM3
Date: 2025-10-03
Updated: 2025-10-17 (refactor: use ProductRepository for data access)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from storefront.core.database import Database, get_database
from storefront.domain.product import MAX_DB_INT, ProductCreate, ProductUpdate
from storefront.repositories.product_repository import DuplicateSkuError, ProductRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by name or SKU"),
    in_stock: Optional[bool] = Query(None, description="Only products with (true) or without (false) stock"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    database: Database = Depends(get_database),
):
    """
    Get all active products with optional filters
    """
    with database.session() as session:
        products, total = ProductRepository(session).find_all(
            category=category,
            search=search,
            in_stock=in_stock,
            limit=limit,
            offset=offset
        )

    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(products),
        "data": [product.to_dict() for product in products]
    }


@router.get("/{product_id}")
def get_product(product_id: int = Path(..., le=MAX_DB_INT), database: Database = Depends(get_database)):
    """
    Get a single product by ID
    """
    with database.session() as session:
        product = ProductRepository(session).find_by_id(product_id)

    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    return {
        "status": "success",
        "data": product.to_dict()
    }


@router.post("/", status_code=201)
def create_product(payload: ProductCreate, database: Database = Depends(get_database)):
    """
    Add a product to the catalog

    The SKU is also the product_retailer_id used by the WhatsApp catalog.
    """
    try:
        with database.transaction() as session:
            product = ProductRepository(session).create(payload)
    except DuplicateSkuError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info(f"Product added to database: {product.id} ({product.sku})")
    return {
        "status": "success",
        "data": product.to_dict()
    }


@router.put("/{product_id}")
def update_product(
    payload: ProductUpdate,
    product_id: int = Path(..., le=MAX_DB_INT),
    database: Database = Depends(get_database),
):
    """
    Partially update a product

    Committed orders are not affected: they keep the name and price
    captured at checkout.
    """
    try:
        with database.transaction() as session:
            product = ProductRepository(session).update(product_id, payload)
    except DuplicateSkuError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    return {
        "status": "success",
        "data": product.to_dict()
    }


@router.delete("/{product_id}")
def delete_product(product_id: int = Path(..., le=MAX_DB_INT), database: Database = Depends(get_database)):
    """
    Delete a product

    Products already sold at least once are archived instead, so they
    disappear from the catalog while order history stays intact.
    """
    with database.transaction() as session:
        result = ProductRepository(session).delete(product_id)

    if result is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    logger.info(f"Product {product_id} {result}")
    return {
        "status": "success",
        "result": result,
        "message": f"Product {product_id} {result}"
    }
