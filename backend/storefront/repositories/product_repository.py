"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
Works on the caller's session so it can take part in a larger transaction
(the checkout unit of work).

Author: TM3
Date: 2025-10-17
Updated: 2025-12-02 (atomic reserve_stock for checkout)
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock, ProductNotFound
from storefront.domain.product import MAX_DB_INT, Product, ProductCreate, ProductUpdate
from storefront.models.cart import CartItem
from storefront.models.product import Product as ProductRow
from storefront.repositories.order_repository import OrderRepository


class DuplicateSkuError(ValueError):
    """Another product already uses this SKU"""

    def __init__(self, sku: str):
        super().__init__(f"SKU {sku} already exists")
        self.sku = sku


class ProductRepository:
    """
    Repository for Product data access

    All queries for products are centralized here.
    Returns Product domain models, not ORM rows.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _map_row_to_product(row: ProductRow) -> Product:
        """Helper method to map an ORM row to the Product domain model"""
        return Product.model_validate(row)

    def _get_row(self, product_id: int, include_inactive: bool = False) -> Optional[ProductRow]:
        stmt = select(ProductRow).where(ProductRow.id == product_id)
        if not include_inactive:
            stmt = stmt.where(ProductRow.is_active.is_(True))
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_id(self, product_id: int, include_inactive: bool = False) -> Optional[Product]:
        """
        Find product by ID

        Args:
            product_id: Internal product ID
            include_inactive: Also return archived products

        Returns:
            Product or None if not found
        """
        row = self._get_row(product_id, include_inactive)
        if row is None:
            return None
        return self._map_row_to_product(row)

    def find_by_sku(self, sku: str) -> Optional[Product]:
        """
        Find an active product by SKU (the WhatsApp product_retailer_id)

        Args:
            sku: Product SKU

        Returns:
            Product or None if not found
        """
        row = self.session.execute(
            select(ProductRow).where(ProductRow.sku == sku, ProductRow.is_active.is_(True))
        ).scalar_one_or_none()
        if row is None:
            return None
        return self._map_row_to_product(row)

    def find_all(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        in_stock: Optional[bool] = None,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            category: Filter by category
            search: Search in name or SKU
            in_stock: True for quantity > 0, False for sold out
            include_inactive: Also return archived products
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        conditions = []

        if not include_inactive:
            conditions.append(ProductRow.is_active.is_(True))

        if category:
            conditions.append(ProductRow.category == category)

        if search:
            search_term = f"%{search}%"
            conditions.append(or_(ProductRow.name.ilike(search_term), ProductRow.sku.ilike(search_term)))

        if in_stock is True:
            conditions.append(ProductRow.quantity > 0)
        elif in_stock is False:
            conditions.append(ProductRow.quantity == 0)

        total = self.session.execute(
            select(func.count()).select_from(ProductRow).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(ProductRow)
            .where(*conditions)
            .order_by(ProductRow.name)
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return [self._map_row_to_product(row) for row in rows], total

    def count_active(self) -> int:
        return self.session.execute(
            select(func.count()).select_from(ProductRow).where(ProductRow.is_active.is_(True))
        ).scalar_one()

    def create(self, data: ProductCreate) -> Product:
        """
        Insert a new product

        Raises:
            DuplicateSkuError: if the SKU is taken (archived products included)
        """
        self._ensure_sku_free(data.sku)

        row = ProductRow(**data.model_dump())
        self.session.add(row)
        self.session.flush()
        return self._map_row_to_product(row)

    def update(self, product_id: int, data: ProductUpdate) -> Optional[Product]:
        """
        Apply a partial update (only fields present in the request body)

        Returns:
            Updated product or None if not found
        """
        row = self._get_row(product_id)
        if row is None:
            return None

        changes = data.model_dump(exclude_unset=True)
        if changes.get('sku') and changes['sku'] != row.sku:
            self._ensure_sku_free(changes['sku'])

        for field, value in changes.items():
            if value is None and field in ('sku', 'name', 'price', 'quantity'):
                continue
            setattr(row, field, value)

        self.session.flush()
        return self._map_row_to_product(row)

    def delete(self, product_id: int) -> Optional[str]:
        """
        Delete a product

        Products that appear on an order line are archived instead of
        removed. Either way the product leaves every cart.

        Returns:
            'deleted', 'archived', or None if not found
        """
        row = self._get_row(product_id)
        if row is None:
            return None

        self.session.execute(delete(CartItem).where(CartItem.product_id == product_id))

        if OrderRepository(self.session).references_product(product_id):
            row.is_active = False
            self.session.flush()
            return 'archived'

        self.session.delete(row)
        self.session.flush()
        return 'deleted'

    def reserve_stock(self, product_id: int, quantity: int) -> Product:
        """
        Atomically check and decrement stock for one product

        Single conditional UPDATE; the row lock it takes is held until the
        surrounding transaction ends.

        Returns:
            The product as it is after the decrement

        Raises:
            ProductNotFound: product missing or archived
            InsufficientStock: quantity > available
        """
        reserved = 0
        # No stock column can hold more than MAX_DB_INT, so larger requests only need classifying
        if product_id <= MAX_DB_INT and quantity <= MAX_DB_INT:
            reserved = self.session.execute(
                update(ProductRow)
                .where(
                    ProductRow.id == product_id,
                    ProductRow.is_active.is_(True),
                    ProductRow.quantity >= quantity,
                )
                .values(
                    quantity=ProductRow.quantity - quantity,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            ).rowcount

        row = None
        if product_id <= MAX_DB_INT:
            row = self.session.execute(
                select(ProductRow)
                .where(ProductRow.id == product_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

        if reserved == 0:
            if row is None or not row.is_active:
                raise ProductNotFound(product_id)
            raise InsufficientStock(product_id, requested=quantity, available=row.quantity, product_name=row.name)

        return self._map_row_to_product(row)

    def _ensure_sku_free(self, sku: str):
        existing = self.session.execute(
            select(ProductRow.id).where(ProductRow.sku == sku)
        ).first()
        if existing is not None:
            raise DuplicateSkuError(sku)
