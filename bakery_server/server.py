"""MCP Server for the bakery storefront."""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.types import Resource, Tool, TextContent
from pydantic import AnyUrl

from .catalog import ALL_CATEGORIES
from .checkout import checkout_notices
from .config import BackendSettings
from .errors import InvalidTransitionError, ProductNotFoundError
from .models import PaymentMethod, PickupShift, format_price
from .storefront import (
    AddToCart,
    BeginCheckout,
    ClosePanel,
    DismissAlerts,
    OpenPanel,
    RemoveFromCart,
    SetQuantity,
    Storefront,
    UpdateCheckoutForm,
)
from .supabase_client import SupabaseClient

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("bakery-mcp-server")

# Initialize server
app = Server("bakery-mcp-server")

# Global state
storefront: Storefront

ORDER_FIELDS = ("name", "whatsapp_contact", "payment_method", "pickup_date", "pickup_shift", "pickup_time")


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _cart_lines() -> list[str]:
    items = storefront.cart.lines()
    if not items:
        return ["Your cart is empty"]

    lines = [f"Shopping Cart ({storefront.cart.count()} items):\n"]
    for item in items:
        lines.append(f"  - {item.name} (ID {item.id}) x{item.quantity}: {format_price(item.line_total)}")
    lines.append(f"\nSubtotal: {format_price(storefront.cart.subtotal())}")
    return lines


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("bakery://menu"),
            name="Menu",
            mimeType="application/json",
            description="Categories and products on the menu",
        ),
        Resource(
            uri=AnyUrl("bakery://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents",
        ),
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "bakery://menu":
        menu = {
            "categories": [category.model_dump() for category in storefront.catalog.categories],
            "products": [product.model_dump(mode="json") for product in storefront.catalog.products],
        }
        return json.dumps(menu, indent=2, ensure_ascii=False)

    elif uri_str == "bakery://cart":
        return storefront.cart_view().model_dump_json(indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="bakery_list_categories",
            description="List the menu categories",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="bakery_list_products",
            description="List products on the menu, optionally only those of one category",
            inputSchema={
                "type": "object",
                "properties": {
                    "category_id": {
                        "type": "integer",
                        "description": "Category ID from bakery_list_categories (omit for all products)",
                    },
                },
            },
        ),
        Tool(
            name="bakery_add_to_cart",
            description="Add a product to the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "integer",
                        "description": "Product ID from bakery_list_products",
                    },
                    "quantity": {
                        "type": "integer",
                        "description": "Units to add (default: 1)",
                        "default": 1,
                        "minimum": 1,
                    },
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="bakery_set_quantity",
            description="Set the quantity of a product already in the cart (0 removes it)",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "integer", "description": "Product ID"},
                    "quantity": {"type": "integer", "description": "New quantity"},
                },
                "required": ["product_id", "quantity"],
            },
        ),
        Tool(
            name="bakery_remove_from_cart",
            description="Remove a product from the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {"type": "integer", "description": "Product ID to remove"},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="bakery_get_cart",
            description="Get current shopping cart contents and subtotal",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="bakery_checkout_notices",
            description="Get the ordering rules that apply to the current cart (lead time, prepayment)",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="bakery_place_order",
            description="Place a pickup order for everything in the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Customer full name"},
                    "whatsapp_contact": {"type": "string", "description": "WhatsApp number, e.g. (XX) XXXXX-XXXX"},
                    "payment_method": {
                        "type": "string",
                        "enum": [method.value for method in PaymentMethod],
                        "description": "Payment method",
                    },
                    "pickup_date": {"type": "string", "description": "Pickup date (YYYY-MM-DD)"},
                    "pickup_shift": {
                        "type": "string",
                        "enum": [shift.value for shift in PickupShift],
                        "description": "Pickup shift",
                    },
                    "pickup_time": {"type": "string", "description": "Pickup time (HH:MM)"},
                },
                "required": list(ORDER_FIELDS),
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "bakery_list_categories":
            categories = storefront.catalog.categories
            if not categories:
                return _text("No categories available")

            result_lines = [f"Found {len(categories)} categories:\n"]
            for category in categories:
                result_lines.append(f"  - {category.name} (ID {category.id})")
            return _text("\n".join(result_lines))

        elif name == "bakery_list_products":
            category = arguments.get("category_id")
            products = storefront.catalog.filtered(ALL_CATEGORIES if category is None else int(category))
            if not products:
                return _text("No products found")

            result_lines = [f"Found {len(products)} product(s):\n"]
            for i, product in enumerate(products, 1):
                result_lines.append(f"\n{i}. {product.name}")
                result_lines.append(f"   ID: {product.id}")
                result_lines.append(f"   Price: {format_price(product.price)}")
                if product.description:
                    result_lines.append(f"   {product.description}")
            return _text("\n".join(result_lines))

        elif name == "bakery_add_to_cart":
            product_id = int(arguments["product_id"])
            quantity = int(arguments.get("quantity", 1))
            if quantity < 1:
                return _text("Error: quantity must be at least 1")

            for _ in range(quantity):
                storefront.dispatch(AddToCart(product_id=product_id))

            toast = storefront.notices.current_toast
            result_lines = [f"✅ {toast.message}" if toast else f"✅ Added product {product_id}"]
            result_lines.append(f"Cart: {storefront.cart.count()} item(s), {format_price(storefront.cart.subtotal())}")
            return _text("\n".join(result_lines))

        elif name == "bakery_set_quantity":
            product_id = int(arguments["product_id"])
            storefront.dispatch(SetQuantity(product_id=product_id, quantity=int(arguments["quantity"])))
            return _text("\n".join(_cart_lines()))

        elif name == "bakery_remove_from_cart":
            product_id = int(arguments["product_id"])
            storefront.dispatch(RemoveFromCart(product_id=product_id))
            return _text(f"✅ Removed product {product_id} from cart")

        elif name == "bakery_get_cart":
            return _text("\n".join(_cart_lines()))

        elif name == "bakery_checkout_notices":
            return _text("\n\n".join(checkout_notices(storefront.cart.subtotal())))

        elif name == "bakery_place_order":
            if storefront.cart.is_empty():
                return _text("Error: Your cart is empty")

            # Reopening the panel always starts from the cart view
            storefront.dispatch(ClosePanel())
            storefront.dispatch(OpenPanel())
            storefront.dispatch(BeginCheckout())
            fields = {field: str(arguments.get(field) or "") for field in ORDER_FIELDS}
            storefront.dispatch(UpdateCheckoutForm(fields=fields))

            outcome = await storefront.submit_order()
            # Alerts are reported in the tool result below
            storefront.dispatch(DismissAlerts())
            if outcome.ok:
                return _text(f"✅ Order #{outcome.order_id} placed\n{outcome.message}")

            result_lines = [f"❌ {outcome.message}"]
            if outcome.missing:
                result_lines.append(f"Missing: {', '.join(outcome.missing)}")
            if outcome.invalid:
                result_lines.append(f"Invalid: {', '.join(outcome.invalid)}")
            if outcome.status == "partial":
                result_lines.append(f"Order #{outcome.order_id} was recorded without items; the bakery must reconcile it.")
            return _text("\n".join(result_lines))

        else:
            return _text(f"Unknown tool: {name}")

    except (ProductNotFoundError, InvalidTransitionError, ValueError, KeyError) as e:
        logger.warning(f"Tool {name} rejected: {e}")
        return _text(f"Error: {e}")
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return _text(f"Error: {str(e)}")


async def main() -> None:
    """Main entry point for the MCP server."""
    global storefront

    settings = BackendSettings.from_env()
    backend = SupabaseClient(settings)
    storefront = Storefront(backend, pickup_address=settings.pickup_address)

    logger.info(f"Loading menu from {settings.supabase_url}...")
    if not await storefront.load_catalog():
        logger.warning("Menu could not be loaded; the server will run with an empty menu")

    logger.info("Starting Bakery MCP Server...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await backend.aclose()


if __name__ == "__main__":
    asyncio.run(main())
