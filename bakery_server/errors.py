"""Exceptions raised by the storefront."""

from typing import Optional


class BakeryError(Exception):
    """Base class for storefront errors."""


class BackendError(BakeryError):
    """A request to the hosted backend failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class CatalogLoadError(BakeryError):
    """Categories or products could not be fetched."""


class ProductNotFoundError(BakeryError):
    """No product with the given ID is on the menu."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InvalidTransitionError(BakeryError):
    """The checkout flow cannot move to the requested view."""


class CheckoutValidationError(BakeryError):
    """Required checkout fields are missing or malformed."""

    def __init__(self, missing: list[str], invalid: Optional[list[str]] = None) -> None:
        self.missing = missing
        self.invalid = invalid or []
        problems = []
        if self.missing:
            problems.append(f"missing: {', '.join(self.missing)}")
        if self.invalid:
            problems.append(f"invalid: {', '.join(self.invalid)}")
        super().__init__(f"Checkout form incomplete ({'; '.join(problems)})")


class OrderSubmissionError(BakeryError):
    """Placing the order failed."""


class OrderCreateError(OrderSubmissionError):
    """The order row could not be created; nothing was written."""


class PartialOrderError(OrderSubmissionError):
    """The order row exists but its items could not be written."""

    def __init__(self, order_id: int, message: str) -> None:
        super().__init__(message)
        self.order_id = order_id
