"""
Typed errors raised by the cart and checkout services.

Domain errors (stock, payment init) reach the caller and leave state
unchanged. Infrastructure errors (persistence, reconciliation) are logged
where they occur and never interrupt the user-facing flow.
"""

from typing import Optional


class StokcerError(Exception):
    """Base class for all service errors."""


class InsufficientStockError(StokcerError):
    """Requested quantity exceeds the stock available for a variant."""

    def __init__(self, product_title: str, available_quantity: int):
        self.product_title = product_title
        self.available_quantity = available_quantity
        super().__init__(
            f"Not enough stock for {product_title}. Only {available_quantity} left."
        )


class PaymentInitError(StokcerError):
    """The payment backend failed to produce a usable checkout token."""

    def __init__(self, message: str = "Failed to initialize payment", provider: Optional[str] = None):
        self.message = message
        self.provider = provider
        super().__init__(message)


class PersistenceWriteError(StokcerError):
    """A durable cart write failed."""


class ReconciliationError(StokcerError):
    """A local checkout session could not be updated to the provider status."""

    def __init__(self, order_id: str, message: str):
        self.order_id = order_id
        super().__init__(f"Failed to reconcile {order_id}: {message}")
