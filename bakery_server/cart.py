"""Shopping cart held in memory for one session."""

import logging
from decimal import Decimal
from typing import Optional

from .models import CartItem, Product

logger = logging.getLogger(__name__)


def parse_quantity_input(text: str, current: int) -> int:
    """
    Parse a quantity typed by the customer.

    Returns the typed quantity when it is a whole number of at least 1,
    otherwise the current quantity (the field reverts).
    """
    try:
        quantity = int(str(text).strip())
    except ValueError:
        logger.warning(f"Rejected quantity input {text!r}, keeping {current}")
        return current

    if quantity < 1:
        logger.warning(f"Rejected quantity input {text!r}, keeping {current}")
        return current
    return quantity


class CartStore:
    """
    Cart lines keyed by product ID.

    There is at most one line per product and every line has quantity >= 1.
    Totals are always recomputed from the lines.
    """

    def __init__(self) -> None:
        self._items: dict[int, CartItem] = {}

    def _find(self, product_id: int) -> Optional[CartItem]:
        return self._items.get(product_id)

    def add(self, product: Product) -> CartItem:
        """Add one unit of a product, creating the line if needed."""
        item = self._find(product.id)
        if item:
            item.quantity += 1
        else:
            item = CartItem(**product.model_dump(exclude={"quantity"}), quantity=1)
            self._items[product.id] = item
        logger.info(f"Cart: {product.name} x{item.quantity}")
        return item.model_copy()

    def set_quantity(self, product_id: int, quantity: int) -> None:
        """Overwrite a line's quantity; a quantity of 0 or less removes the line."""
        if quantity <= 0:
            self.remove(product_id)
            return

        item = self._find(product_id)
        if item:
            item.quantity = quantity

    def increment(self, product_id: int) -> None:
        item = self._find(product_id)
        if item:
            self.set_quantity(product_id, item.quantity + 1)

    def decrement(self, product_id: int) -> None:
        """Take one unit off a line, never going below 1."""
        item = self._find(product_id)
        if item:
            self.set_quantity(product_id, max(1, item.quantity - 1))

    def remove(self, product_id: int) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def quantity_of(self, product_id: int) -> int:
        item = self._find(product_id)
        return item.quantity if item else 0

    def lines(self) -> list[CartItem]:
        """Snapshot of the cart lines in the order they were added."""
        return [item.model_copy() for item in self._items.values()]

    def subtotal(self) -> Decimal:
        return sum((item.price * item.quantity for item in self._items.values()), Decimal("0"))

    def count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def is_empty(self) -> bool:
        return not self._items
