"""
Checkout errors

Every failure of CheckoutService.checkout is one of these. None of them
leaves a partial mutation behind: the transaction is rolled back before
the exception reaches the channel adapter.
"""
from typing import Optional


class CheckoutError(Exception):
    """Base error for checkout failures"""

    code = "checkout_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class EmptyRequest(CheckoutError):
    """Checkout called with zero items"""

    code = "empty_request"

    def __init__(self):
        super().__init__("Order must contain at least one item")


class ProductNotFound(CheckoutError):
    """Requested product does not exist (or was archived)"""

    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["product_id"] = self.product_id
        return data


class InsufficientStock(CheckoutError):
    """Requested quantity exceeds available stock"""

    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int, product_name: Optional[str] = None):
        label = product_name or f"product {product_id}"
        super().__init__(f"Insufficient stock for {label}: requested {requested}, available {available}")
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        })
        return data


class StorageFailure(CheckoutError):
    """The unit of work could not be committed"""

    code = "storage_failure"

    def __init__(self, message: str = "Could not save the order, please try again"):
        super().__init__(message)
