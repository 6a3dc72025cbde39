# marketplace/domain/errors.py
"""
Typed errors raised by services.

The API layer maps them to HTTP responses by class (``status_code``/``kind``),
never by looking at message text.
"""
from typing import Any, Dict


class MarketplaceError(Exception):
    """Base class for every user-facing error."""

    status_code = 400
    kind = "error"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, details: Dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(MarketplaceError):
    status_code = 400
    kind = "validation"
    default_message = "Invalid input"


class EmptyCartError(MarketplaceError):
    status_code = 400
    kind = "empty_cart"
    default_message = "Your cart is empty"


class InsufficientStockError(MarketplaceError):
    status_code = 400
    kind = "insufficient_stock"
    default_message = "Insufficient stock for one or more products"

    def __init__(
        self,
        product_id: int | None = None,
        product_name: str | None = None,
        available: int | None = None,
        requested: int | None = None,
        message: str | None = None,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested

        if message is None and product_name is not None:
            message = f"Insufficient stock for product: {product_name}"

        details = None
        if product_id is not None:
            details = {
                "product_id": product_id,
                "product_name": product_name,
                "available": available,
                "requested": requested,
            }
        super().__init__(message, details)


class UnauthorizedError(MarketplaceError):
    status_code = 401
    kind = "unauthorized"
    default_message = "Authentication required"


class ForbiddenError(MarketplaceError):
    status_code = 403
    kind = "forbidden"
    default_message = "You do not have permission to perform this action"


class NotFoundError(MarketplaceError):
    status_code = 404
    kind = "not_found"
    default_message = "Resource not found"


class ConflictError(MarketplaceError):
    status_code = 409
    kind = "conflict"
    default_message = "Resource already exists"


class InfrastructureError(MarketplaceError):
    status_code = 503
    kind = "infrastructure"
    default_message = "Service temporarily unavailable"
