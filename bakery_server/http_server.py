"""HTTP server for the bakery storefront."""

import logging
import secrets
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Callable, Literal, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel

from . import __version__
from .config import BackendSettings
from .errors import InvalidTransitionError, ProductNotFoundError
from .storefront import (
    Action,
    AddToCart,
    BackToCart,
    BeginCheckout,
    ClosePanel,
    DecrementQuantity,
    DismissAlerts,
    EditQuantity,
    IncrementQuantity,
    OpenPanel,
    RemoveFromCart,
    SelectCategory,
    Storefront,
    UpdateCheckoutForm,
)
from .supabase_client import SupabaseClient

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("bakery-http-server")

SESSION_COOKIE = "bakery_session"
SESSION_MAX_IDLE = 2 * 60 * 60
MAX_SESSIONS = 1000

OUTCOME_STATUS_CODES = {
    "success": 200,
    "invalid": 422,
    "failed": 502,
    "partial": 502,
    "busy": 409,
}


class SessionRegistry:
    """
    One storefront per browser session, kept in memory.

    Sessions idle for longer than max_idle seconds are dropped, and the
    least recently used ones go first once max_sessions is reached. A
    session with an order in flight is never dropped.
    """

    def __init__(
        self,
        backend: SupabaseClient,
        pickup_address: str,
        max_idle: float = SESSION_MAX_IDLE,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.pickup_address = pickup_address
        self.max_idle = max_idle
        self.max_sessions = max_sessions
        self.clock = clock
        # Ordered from least to most recently used
        self._sessions: OrderedDict[str, Storefront] = OrderedDict()
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[Storefront]:
        self.evict_idle()
        storefront = self._sessions.get(session_id)
        if storefront is not None:
            self._touch(session_id)
        return storefront

    async def create(self, session_id: str) -> Storefront:
        """Start a session and load its menu."""
        self.evict_idle()
        self._evict_overflow()
        storefront = Storefront(self.backend, pickup_address=self.pickup_address)
        self._sessions[session_id] = storefront
        self._touch(session_id)
        logger.info(f"New session ({len(self._sessions)} active)")
        await storefront.load_catalog()
        return storefront

    def evict_idle(self) -> int:
        """Drop sessions idle for longer than max_idle. Returns how many went."""
        cutoff = self.clock() - self.max_idle
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen < cutoff and not self._sessions[session_id].submitting
        ]
        for session_id in expired:
            self._drop(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s), {len(self._sessions)} active")
        return len(expired)

    def _evict_overflow(self) -> None:
        for session_id in list(self._sessions):
            if len(self._sessions) < self.max_sessions:
                break
            if not self._sessions[session_id].submitting:
                logger.info("Session limit reached, dropping the least recently used")
                self._drop(session_id)

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self.clock()

    def _drop(self, session_id: str) -> None:
        del self._sessions[session_id]
        del self._last_seen[session_id]


# Global state
settings: BackendSettings
backend: SupabaseClient
sessions: SessionRegistry


def build_backend(backend_settings: BackendSettings) -> SupabaseClient:
    return SupabaseClient(backend_settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global settings, backend, sessions

    # Startup
    logger.info("Starting Bakery HTTP Server...")
    settings = BackendSettings.from_env()
    backend = build_backend(settings)
    sessions = SessionRegistry(backend, settings.pickup_address)
    logger.info(f"Using backend at {settings.supabase_url}")

    yield

    # Shutdown
    logger.info("Shutting down Bakery HTTP Server...")
    await backend.aclose()


app = FastAPI(
    title="Bakery Storefront",
    description="HTTP API for browsing the bakery menu and placing pickup orders",
    version=__version__,
    lifespan=lifespan,
)


async def get_storefront(request: Request, response: Response) -> Storefront:
    """Resolve the caller's storefront session, starting one if needed."""
    session_id = request.cookies.get(SESSION_COOKIE)
    storefront = sessions.get(session_id) if session_id else None
    if storefront is None:
        session_id = secrets.token_urlsafe(16)
        storefront = await sessions.create(session_id)
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return storefront


def apply(storefront: Storefront, action: Action) -> None:
    """Dispatch an action, turning storefront errors into HTTP errors."""
    try:
        storefront.dispatch(action)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Request/Response Models
class CategoryRequest(BaseModel):
    category: Union[int, Literal["all"]] = "all"


class ProductRequest(BaseModel):
    product_id: int


class QuantityRequest(BaseModel):
    product_id: int
    quantity: str


class CheckoutFormRequest(BaseModel):
    name: Optional[str] = None
    whatsapp_contact: Optional[str] = None
    payment_method: Optional[str] = None
    pickup_date: Optional[str] = None
    pickup_shift: Optional[str] = None
    pickup_time: Optional[str] = None


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Bakery Storefront",
        "version": __version__,
        "description": "HTTP API for browsing the bakery menu and placing pickup orders",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "storefront": "GET /storefront",
            "catalog": {"get": "GET /catalog", "select_category": "POST /catalog/category"},
            "cart": {
                "get": "GET /cart",
                "add": "POST /cart/add",
                "quantity": "POST /cart/quantity",
                "increment": "POST /cart/increment",
                "decrement": "POST /cart/decrement",
                "remove": "POST /cart/remove",
            },
            "panel": {"open": "POST /panel/open", "close": "POST /panel/close"},
            "checkout": {
                "begin": "POST /checkout/begin",
                "back": "POST /checkout/back",
                "form": "POST /checkout/form",
                "submit": "POST /checkout/submit",
            },
            "notices": {"dismiss": "POST /notices/dismiss"},
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "sessions": len(sessions)}


@app.get("/storefront")
async def get_view(storefront: Storefront = Depends(get_storefront)):
    """Everything the storefront page shows, in one snapshot."""
    return storefront.snapshot().model_dump(mode="json")


# Catalog endpoints
@app.get("/catalog")
async def get_catalog(storefront: Storefront = Depends(get_storefront)):
    """Categories and the products for the selected category."""
    view = storefront.snapshot()
    return {
        "selected_category": view.selected_category,
        "is_loading": view.is_loading,
        "loaded": view.catalog_loaded,
        "categories": [category.model_dump() for category in view.categories],
        "products": [product.model_dump(mode="json") for product in view.products],
    }


@app.post("/catalog/category")
async def select_category(request: CategoryRequest, storefront: Storefront = Depends(get_storefront)):
    """Select the category shown in the product grid."""
    apply(storefront, SelectCategory(category=request.category))
    products = storefront.catalog.filtered(storefront.selected_category)
    return {
        "selected_category": storefront.selected_category,
        "count": len(products),
        "products": [product.model_dump(mode="json") for product in products],
    }


# Cart endpoints
@app.get("/cart")
async def get_cart(storefront: Storefront = Depends(get_storefront)):
    """Get current shopping cart."""
    return storefront.cart_view().model_dump(mode="json")


@app.post("/cart/add")
async def add_to_cart(request: ProductRequest, storefront: Storefront = Depends(get_storefront)):
    """Add one unit of a product to the cart."""
    apply(storefront, AddToCart(product_id=request.product_id))
    toast = storefront.notices.current_toast
    return {
        "success": True,
        "message": toast.message if toast else None,
        "cart": storefront.cart_view().model_dump(mode="json"),
    }


@app.post("/cart/quantity")
async def set_quantity(request: QuantityRequest, storefront: Storefront = Depends(get_storefront)):
    """Set a line's quantity from free text; invalid text keeps the old quantity."""
    apply(storefront, EditQuantity(product_id=request.product_id, text=request.quantity))
    return storefront.cart_view().model_dump(mode="json")


@app.post("/cart/increment")
async def increment(request: ProductRequest, storefront: Storefront = Depends(get_storefront)):
    apply(storefront, IncrementQuantity(product_id=request.product_id))
    return storefront.cart_view().model_dump(mode="json")


@app.post("/cart/decrement")
async def decrement(request: ProductRequest, storefront: Storefront = Depends(get_storefront)):
    apply(storefront, DecrementQuantity(product_id=request.product_id))
    return storefront.cart_view().model_dump(mode="json")


@app.post("/cart/remove")
async def remove_from_cart(request: ProductRequest, storefront: Storefront = Depends(get_storefront)):
    """Remove a product from the cart."""
    apply(storefront, RemoveFromCart(product_id=request.product_id))
    return storefront.cart_view().model_dump(mode="json")


# Panel endpoints
@app.post("/panel/open")
async def open_panel(storefront: Storefront = Depends(get_storefront)):
    apply(storefront, OpenPanel())
    return storefront.snapshot().model_dump(mode="json")


@app.post("/panel/close")
async def close_panel(storefront: Storefront = Depends(get_storefront)):
    apply(storefront, ClosePanel())
    return storefront.snapshot().model_dump(mode="json")


# Checkout endpoints
@app.post("/checkout/begin")
async def begin_checkout(storefront: Storefront = Depends(get_storefront)):
    """Move from the cart to the checkout form."""
    apply(storefront, BeginCheckout())
    return storefront.snapshot().model_dump(mode="json")


@app.post("/checkout/back")
async def back_to_cart(storefront: Storefront = Depends(get_storefront)):
    """Go back to the cart, discarding the checkout form."""
    apply(storefront, BackToCart())
    return storefront.snapshot().model_dump(mode="json")


@app.post("/checkout/form")
async def update_form(request: CheckoutFormRequest, storefront: Storefront = Depends(get_storefront)):
    """Fill in checkout form fields."""
    apply(storefront, UpdateCheckoutForm(fields=request.model_dump(exclude_none=True)))
    return storefront.snapshot().model_dump(mode="json")


@app.post("/checkout/submit")
async def submit_order(response: Response, storefront: Storefront = Depends(get_storefront)):
    """Confirm the order."""
    try:
        outcome = await storefront.submit_order()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    response.status_code = OUTCOME_STATUS_CODES[outcome.status]
    return {
        "success": outcome.ok,
        **outcome.model_dump(mode="json"),
        "view": storefront.flow.view.value,
        "cart": storefront.cart_view().model_dump(mode="json"),
    }


@app.post("/notices/dismiss")
async def dismiss_notices(storefront: Storefront = Depends(get_storefront)):
    apply(storefront, DismissAlerts())
    return {"notices": [notice.model_dump() for notice in storefront.notices.active()]}


def run_http_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server()
