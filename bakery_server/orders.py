"""Two-step order submission: create the order, then its items."""

import logging
from decimal import Decimal

from pydantic import ValidationError

from .errors import BackendError, OrderCreateError, PartialOrderError
from .models import CartItem, CheckoutDetails, NewOrder, NewOrderItem, Order
from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def build_order(lines: list[CartItem], details: CheckoutDetails) -> NewOrder:
    subtotal = sum((line.price * line.quantity for line in lines), Decimal("0"))
    return NewOrder(
        customer_name=details.name,
        customer_whatsapp=details.whatsapp_contact,
        delivery_address=details.pickup_address,
        payment_method=details.payment_method,
        subtotal=subtotal,
        pickup_date=details.pickup_date,
        pickup_shift=details.pickup_shift,
        pickup_time=details.pickup_time,
    )


def build_order_items(order_id: int, lines: list[CartItem]) -> list[NewOrderItem]:
    """One row per cart line, with the unit price as it is right now."""
    return [
        NewOrderItem(
            order_id=order_id,
            product_id=line.id,
            quantity=line.quantity,
            unit_price=line.price,
        )
        for line in lines
    ]


class OrderSubmitter:
    """Writes an order and its items to the backend, in that order."""

    def __init__(self, backend: SupabaseClient) -> None:
        self.backend = backend

    async def submit(self, lines: list[CartItem], details: CheckoutDetails) -> Order:
        """
        Place an order for a snapshot of the cart.

        Args:
            lines: Cart lines captured when the customer confirmed
            details: Validated checkout details

        Returns:
            The created order

        Raises:
            OrderCreateError: If the order row was not created (nothing written)
            PartialOrderError: If the order row exists but its items were not written
        """
        if not lines:
            raise OrderCreateError("Cannot place an order with no items")

        new_order = build_order(lines, details)
        logger.info(f"=== PLACE ORDER: {len(lines)} line(s), subtotal={new_order.subtotal} ===")

        # Step 1: the order row
        try:
            order = await self.backend.insert_order(new_order)
        except (BackendError, ValidationError) as e:
            logger.error(f"Order insert failed: {e}", exc_info=True)
            raise OrderCreateError(f"Failed to create order: {e}") from e

        if order is None:
            logger.error("Order insert returned no order id")
            raise OrderCreateError("Failed to create order: no order id returned")

        logger.info(f"Order {order.id} created")

        # Step 2: the items, only once the order id is known
        items = build_order_items(order.id, lines)
        try:
            await self.backend.insert_order_items(items)
        except (BackendError, ValidationError) as e:
            logger.error(
                f"Order {order.id} was created but its {len(items)} item(s) were not: {e}",
                exc_info=True,
            )
            raise PartialOrderError(
                order.id, f"Order {order.id} created without items: {e}"
            ) from e

        logger.info(f"Order {order.id}: {len(items)} item(s) written")
        return order
